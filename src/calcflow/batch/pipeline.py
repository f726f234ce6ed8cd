"""Cascade execution of a batch node graph.

Runs every batch node in dependency order, feeding each node the datasets
produced by its upstream nodes.
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from calcflow.batch.engine import BatchFormulaEngine
from calcflow.batch.filter import filter_rows
from calcflow.batch.join import execute_join
from calcflow.batch.models import (
    BatchResult,
    Dataset,
    FilterCriteria,
    JoinConfig,
    Operation,
    RowError,
    ScalarInput,
)
from calcflow.batch.transform import apply_operations
from calcflow.core.logging import LoggerMixin
from calcflow.graph.dependencies import NodeDependencyGraph
from calcflow.graph.models import Edge

NO_SOURCE_DATA_MESSAGE = "No source data connected"
CIRCULAR_DEPENDENCY_MESSAGE = "Circular dependency detected"


class DatasetNode(BaseModel):
    """Imported table; the root of a batch chain."""

    id: str
    label: str = ""
    type: Literal["dataset"] = "dataset"
    dataset: Dataset = Field(default_factory=Dataset)


class FilterNode(BaseModel):
    id: str
    label: str = ""
    type: Literal["filter"] = "filter"
    criteria: Optional[FilterCriteria] = None


class TableMathNode(BaseModel):
    """Adds a formula column to its upstream dataset."""

    id: str
    label: str = ""
    type: Literal["table_math"] = "table_math"
    formula: str = ""
    new_column_name: str = ""
    unit_override: Optional[str] = None


class TransformNode(BaseModel):
    id: str
    label: str = ""
    type: Literal["transform"] = "transform"
    operations: list[Operation] = Field(default_factory=list)


class JoinNode(BaseModel):
    """
    Left join of two upstream datasets.

    Inbound edges pick their side by ``target_handle``. Edges without a
    known handle fill the free sides in edge order, main first.
    """

    id: str
    label: str = ""
    type: Literal["join"] = "join"
    left_key: str = ""
    right_key: str = ""
    target_columns: list[str] = Field(default_factory=list)
    main_handle: str = "main"
    lookup_handle: str = "lookup"


BatchNode = Annotated[
    Union[DatasetNode, FilterNode, TableMathNode, TransformNode, JoinNode],
    Field(discriminator="type"),
]


class ScalarFeed(BaseModel):
    """Value of a scalar graph node offered to downstream table math nodes."""

    label: str = "Scalar"
    value: float = 0.0
    unit: str = ""


class BatchNodeStatus(str, Enum):
    IDLE = "IDLE"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class BatchNodeState(BaseModel):
    """Outcome for one batch node."""

    status: BatchNodeStatus = BatchNodeStatus.IDLE
    dataset: Optional[Dataset] = None
    error: Optional[RowError] = None
    row_count: int = 0
    derived_unit: Optional[str] = None
    unit_warning: Optional[str] = None

    @classmethod
    def from_result(cls, result: BatchResult) -> "BatchNodeState":
        if not result.success:
            return cls(status=BatchNodeStatus.ERROR, error=result.error)
        return cls(
            status=BatchNodeStatus.SUCCESS,
            dataset=result.dataset,
            row_count=len(result.dataset.rows),
            derived_unit=result.derived_unit,
            unit_warning=result.unit_warning,
        )

    @classmethod
    def failed(cls, message: str) -> "BatchNodeState":
        return cls(status=BatchNodeStatus.ERROR, error=RowError(row_index=-1, message=message))


class BatchPipeline(LoggerMixin):
    """
    Runs a graph of batch nodes.

    Scalar graph nodes take part only as feeders: pass their values in
    ``scalar_results`` keyed by node id and connect them to table math
    nodes with ordinary edges.
    """

    def __init__(self, engine: BatchFormulaEngine | None = None):
        self.engine = engine or BatchFormulaEngine()

    def run(
        self,
        nodes: Sequence[BatchNode],
        edges: Sequence[Edge],
        scalar_results: Mapping[str, ScalarFeed] | None = None,
        changed_node_id: str | None = None,
        previous_states: Mapping[str, BatchNodeState] | None = None,
    ) -> dict[str, BatchNodeState]:
        """
        Evaluate batch nodes in topological order.

        Args:
            nodes: Batch nodes of the graph
            edges: Connections between batch and scalar nodes
            scalar_results: Scalar node id -> value fed to table math nodes
            changed_node_id: Limit the run to this node and its downstream nodes
            previous_states: States reused for nodes outside that cascade

        Returns:
            State per batch node id
        """
        scalar_results = scalar_results or {}
        previous_states = previous_states or {}
        by_id = {node.id: node for node in nodes}
        graph = NodeDependencyGraph.from_edges([*by_id, *scalar_results], edges)
        order, circular = graph.topological_sort()

        cascade = None
        if changed_node_id is not None:
            cascade = {changed_node_id, *graph.get_affected_nodes(changed_node_id)}

        states: dict[str, BatchNodeState] = {}
        for node_id in circular:
            if node_id in by_id:
                states[node_id] = BatchNodeState.failed(CIRCULAR_DEPENDENCY_MESSAGE)

        for node_id in order:
            node = by_id.get(node_id)
            if node is None:
                continue
            if cascade is not None and node_id not in cascade and node_id in previous_states:
                states[node_id] = previous_states[node_id]
                continue
            inbound = [edge for edge in edges if edge.target == node_id]
            states[node_id] = self._run_node(node, inbound, states, scalar_results)

        self.logger.debug(
            "Batch pipeline finished",
            extra={
                "nodes": len(by_id),
                "changed": changed_node_id,
                "failed": sorted(k for k, s in states.items() if s.status == BatchNodeStatus.ERROR),
            },
        )
        return states

    def _run_node(
        self,
        node: BatchNode,
        inbound: list[Edge],
        states: Mapping[str, BatchNodeState],
        scalar_results: Mapping[str, ScalarFeed],
    ) -> BatchNodeState:
        if isinstance(node, DatasetNode):
            return BatchNodeState(
                status=BatchNodeStatus.SUCCESS,
                dataset=node.dataset,
                row_count=len(node.dataset.rows),
            )

        upstream_edges = [edge for edge in inbound if edge.source not in scalar_results]
        if isinstance(node, JoinNode):
            upstream_edges = _join_inputs(node, upstream_edges)
        upstream = [edge.source for edge in upstream_edges]
        if any(source not in states for source in upstream):
            # Edges from nodes that are not part of this run
            return BatchNodeState.failed(NO_SOURCE_DATA_MESSAGE)
        if any(states[source].status != BatchNodeStatus.SUCCESS for source in upstream):
            return BatchNodeState.failed(NO_SOURCE_DATA_MESSAGE)
        datasets = [states[source].dataset for source in upstream]

        required = 2 if isinstance(node, JoinNode) else 1
        if len(datasets) < required:
            return BatchNodeState.failed(NO_SOURCE_DATA_MESSAGE)

        if isinstance(node, FilterNode):
            if node.criteria is None:
                return BatchNodeState()
            return BatchNodeState.from_result(filter_rows(datasets[0], node.criteria))

        if isinstance(node, TableMathNode):
            if not node.formula.strip() or not node.new_column_name.strip():
                return BatchNodeState()
            scalars = {
                scalar_results[edge.source].label: ScalarInput(
                    value=scalar_results[edge.source].value, unit=scalar_results[edge.source].unit
                )
                for edge in inbound
                if edge.source in scalar_results
            }
            result = self.engine.execute(
                datasets[0],
                node.new_column_name,
                node.formula,
                scalar_inputs=scalars,
                unit_override=node.unit_override,
            )
            return BatchNodeState.from_result(result)

        if isinstance(node, TransformNode):
            if not node.operations:
                return BatchNodeState()
            return BatchNodeState.from_result(
                apply_operations(datasets[0], node.operations, sources=datasets)
            )

        if isinstance(node, JoinNode):
            config = JoinConfig(
                left_key=node.left_key,
                right_key=node.right_key,
                target_columns=node.target_columns,
            )
            return BatchNodeState.from_result(execute_join(datasets[0], datasets[1], config))

        return BatchNodeState.failed(f"Unsupported batch node: {type(node).__name__}")


def _join_inputs(node: JoinNode, inbound: list[Edge]) -> list[Edge]:
    """Order a join's inbound edges as main then lookup."""
    sides: dict[str, Optional[Edge]] = {node.main_handle: None, node.lookup_handle: None}
    unassigned = []
    for edge in inbound:
        if edge.target_handle in sides and sides[edge.target_handle] is None:
            sides[edge.target_handle] = edge
        else:
            unassigned.append(edge)

    ordered = []
    for handle in (node.main_handle, node.lookup_handle):
        edge = sides[handle]
        if edge is None and unassigned:
            edge = unassigned.pop(0)
        if edge is not None:
            ordered.append(edge)
    return ordered
