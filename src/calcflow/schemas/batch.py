"""Batch operation schemas for request/response validation."""

from typing import Optional

from pydantic import BaseModel, Field

from calcflow.batch.models import Dataset, FilterCriteria, Operation, ScalarInput
from calcflow.batch.pipeline import BatchNode, BatchNodeState, ScalarFeed
from calcflow.graph.models import Edge


class BatchFormulaRequest(BaseModel):
    """Schema for adding a formula column to a dataset."""

    dataset: Dataset
    new_column: str = Field(..., description="Name of the column to add")
    formula: str = Field(..., description="Formula with [Column] references")
    column_units: Optional[dict[str, str]] = Field(
        None, description="Column ID -> unit; defaults to the dataset schema units"
    )
    scalar_inputs: dict[str, ScalarInput] = Field(
        default_factory=dict, description="Named scalar values usable as [Name]"
    )
    unit_override: Optional[str] = Field(None, description="Unit for the new column")


class BatchFilterRequest(BaseModel):
    """Schema for filtering dataset rows."""

    dataset: Dataset
    criteria: FilterCriteria


class BatchTransformRequest(BaseModel):
    """Schema for applying column transforms."""

    dataset: Dataset
    operations: list[Operation] = Field(..., description="Operations applied in order")
    sources: Optional[list[Dataset]] = Field(
        None, description="Datasets available to combine operations"
    )


class BatchJoinRequest(BaseModel):
    """Schema for a left join of a main dataset against a lookup dataset."""

    main: Dataset
    lookup: Dataset
    left_key: str = Field("", description="Key column in the main dataset")
    right_key: str = Field("", description="Key column in the lookup dataset")
    target_columns: list[str] = Field(
        default_factory=list, description="Lookup columns to copy onto main rows"
    )


class BatchPipelineRequest(BaseModel):
    """Schema for running a whole batch node graph."""

    nodes: list[BatchNode]
    edges: list[Edge] = Field(default_factory=list)
    scalar_results: dict[str, ScalarFeed] = Field(
        default_factory=dict, description="Scalar node ID -> value offered to table math nodes"
    )
    changed_node_id: Optional[str] = Field(
        None, description="Re-run only this node and everything downstream of it"
    )
    previous_states: dict[str, BatchNodeState] = Field(
        default_factory=dict, description="Earlier states kept for nodes outside the re-run"
    )


class BatchPipelineResponse(BaseModel):
    """Schema for batch pipeline results."""

    states: dict[str, BatchNodeState]
