"""Scalar calculation graph models.

Nodes are a discriminated union on ``type``; the evaluator matches on the
concrete class.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class Handle(BaseModel):
    """Named connection point on a node."""

    id: str = Field(..., description="Handle ID, unique within the node")
    label: str = Field("", description="Variable name the input binds to in formulas")


class BaseNode(BaseModel):
    """Fields shared by every graph node."""

    id: str = Field(..., description="Node ID")
    label: str = Field("", description="Display label")


class SourceNode(BaseNode):
    """Constant input value with a unit."""

    type: Literal["source"] = "source"
    value: float | str = Field(0, description="Numeric value, or a literal like '100 kWh'")
    unit: str = Field("", description="Unit string, e.g. 'kWh' or 'kg/L'")
    outputs: list[Handle] = Field(default_factory=list)


class FactorMode(str, Enum):
    """Where a factor's value comes from."""

    LOCKED_DB = "LOCKED_DB"
    MANUAL_OVERRIDE = "MANUAL_OVERRIDE"


class FactorNode(BaseNode):
    """Conversion factor; evaluates exactly like a source."""

    type: Literal["factor"] = "factor"
    value: float | str = 0
    unit: str = ""
    mode: FactorMode = FactorMode.MANUAL_OVERRIDE
    db_ref_id: Optional[str] = Field(None, description="Reference database entry ID")
    db_label: Optional[str] = Field(None, description="Reference database entry label")
    outputs: list[Handle] = Field(default_factory=list)


class ProcessNode(BaseNode):
    """Formula over labelled inputs."""

    type: Literal["process"] = "process"
    formula: str = ""
    inputs: list[Handle] = Field(default_factory=list)
    outputs: list[Handle] = Field(default_factory=list)


class PassthroughNode(BaseNode):
    """Forwards its first inbound value unchanged."""

    type: Literal["passthrough"] = "passthrough"
    inputs: list[Handle] = Field(default_factory=list)
    outputs: list[Handle] = Field(default_factory=list)


class GroupNode(BaseNode):
    """Visual container; never produces a value."""

    type: Literal["group"] = "group"
    color: Optional[str] = None


GraphNode = Annotated[
    Union[SourceNode, FactorNode, ProcessNode, PassthroughNode, GroupNode],
    Field(discriminator="type"),
]


class Edge(BaseModel):
    """Directed connection from one node's output to another node's input."""

    id: Optional[str] = None
    source: str = Field(..., description="Source node ID")
    source_handle: Optional[str] = Field(None, description="Output handle on the source node")
    target: str = Field(..., description="Target node ID")
    target_handle: Optional[str] = Field(None, description="Input handle on the target node")


class CalculationResult(BaseModel):
    """Outcome of evaluating one node."""

    node_id: str
    value: str | float | None = None
    error: Optional[str] = None
    result_unit: Optional[str] = Field(None, description="Formatted unit of the output value")


class CalculationOutput(BaseModel):
    """Results of one evaluation pass over the whole graph."""

    results: dict[str, CalculationResult] = Field(default_factory=dict)
    circular_nodes: set[str] = Field(default_factory=set)
