"""Batch tabular operations: formula columns, filter, transforms, joins and cascades."""

from calcflow.batch.engine import BatchFormulaEngine, sanitize_var_name
from calcflow.batch.filter import filter_rows
from calcflow.batch.join import execute_join
from calcflow.batch.models import (
    BatchResult,
    ColumnMetadata,
    ColumnType,
    Dataset,
    FilterCriteria,
    JoinConfig,
    Operation,
    RowError,
    ScalarInput,
)
from calcflow.batch.pipeline import BatchNodeState, BatchNodeStatus, BatchPipeline
from calcflow.batch.transform import apply_operations, set_column_unit

__all__ = [
    "BatchFormulaEngine",
    "BatchNodeState",
    "BatchNodeStatus",
    "BatchPipeline",
    "BatchResult",
    "ColumnMetadata",
    "ColumnType",
    "Dataset",
    "FilterCriteria",
    "JoinConfig",
    "Operation",
    "RowError",
    "ScalarInput",
    "apply_operations",
    "execute_join",
    "filter_rows",
    "sanitize_var_name",
    "set_column_unit",
]
