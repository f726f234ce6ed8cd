"""
Batch dataset endpoints.

Each endpoint returns a ``BatchResult``; a failed operation is still a 200
response with ``success: false`` and the error location.
"""

from fastapi import APIRouter

from calcflow.batch.engine import BatchFormulaEngine
from calcflow.batch.filter import filter_rows
from calcflow.batch.join import execute_join
from calcflow.batch.models import BatchResult, Dataset, JoinConfig
from calcflow.batch.pipeline import BatchPipeline, DatasetNode
from calcflow.batch.transform import apply_operations
from calcflow.core.config import settings
from calcflow.core.exceptions import DatasetValidationError
from calcflow.schemas.batch import (
    BatchFilterRequest,
    BatchFormulaRequest,
    BatchJoinRequest,
    BatchPipelineRequest,
    BatchPipelineResponse,
    BatchTransformRequest,
)

router = APIRouter()


def _check_size(*datasets: Dataset) -> None:
    """Reject datasets above the configured row limit."""
    for dataset in datasets:
        if len(dataset.rows) > settings.max_batch_rows:
            raise DatasetValidationError(
                f"Dataset has {len(dataset.rows)} rows; the limit is {settings.max_batch_rows}",
                details={"rows": len(dataset.rows), "max_batch_rows": settings.max_batch_rows},
            )


@router.post("/formula", response_model=BatchResult)
def run_formula(request: BatchFormulaRequest) -> BatchResult:
    """Add a formula column to a dataset."""
    _check_size(request.dataset)
    return BatchFormulaEngine().execute(
        request.dataset,
        request.new_column,
        request.formula,
        column_units=request.column_units,
        scalar_inputs=request.scalar_inputs,
        unit_override=request.unit_override,
    )


@router.post("/filter", response_model=BatchResult)
def run_filter(request: BatchFilterRequest) -> BatchResult:
    """Keep the rows matching a criterion."""
    _check_size(request.dataset)
    return filter_rows(request.dataset, request.criteria)


@router.post("/transform", response_model=BatchResult)
def run_transform(request: BatchTransformRequest) -> BatchResult:
    """Apply delete/rename/select/combine operations in order."""
    _check_size(request.dataset, *(request.sources or []))
    return apply_operations(request.dataset, request.operations, sources=request.sources)


@router.post("/join", response_model=BatchResult)
def run_join(request: BatchJoinRequest) -> BatchResult:
    """Left join the main dataset against the lookup dataset."""
    _check_size(request.main, request.lookup)
    config = JoinConfig(
        left_key=request.left_key,
        right_key=request.right_key,
        target_columns=request.target_columns,
    )
    return execute_join(request.main, request.lookup, config)


@router.post("/pipeline", response_model=BatchPipelineResponse)
def run_pipeline(request: BatchPipelineRequest) -> BatchPipelineResponse:
    """Run every batch node of a graph in dependency order."""
    _check_size(*(node.dataset for node in request.nodes if isinstance(node, DatasetNode)))
    states = BatchPipeline().run(
        request.nodes,
        request.edges,
        request.scalar_results,
        changed_node_id=request.changed_node_id,
        previous_states=request.previous_states,
    )
    return BatchPipelineResponse(states=states)
