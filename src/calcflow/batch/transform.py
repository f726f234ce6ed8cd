"""Column transforms for batch datasets.

Each operation is a pure ``Dataset -> Dataset`` function; ``apply_operations``
runs a list of them in order.
"""

from collections.abc import Sequence

from calcflow.batch.models import (
    BatchResult,
    ColumnMetadata,
    CombineOperation,
    Dataset,
    DeleteOperation,
    Operation,
    RenameOperation,
    SelectOperation,
    SetUnitOperation,
)
from calcflow.core.exceptions import DatasetValidationError
from calcflow.core.logging import get_logger

logger = get_logger(__name__)


def delete_column(dataset: Dataset, op: DeleteOperation) -> Dataset:
    """Remove a column from every row and from the schema."""
    rows = [{k: v for k, v in row.items() if k != op.column} for row in dataset.rows]
    columns = [column for column in dataset.columns if column.id != op.column]
    return Dataset(rows=rows, columns=columns)


def rename_column(dataset: Dataset, op: RenameOperation) -> Dataset:
    """Move a column to a new key; its schema entry keeps its position and unit."""
    rows = []
    for row in dataset.rows:
        row = dict(row)
        if op.column in row:
            row[op.new_name] = row.pop(op.column)
        rows.append(row)

    columns = [
        column.model_copy(update={"id": op.new_name, "name": op.new_name})
        if column.id == op.column
        else column
        for column in dataset.columns
    ]
    return Dataset(rows=rows, columns=columns)


def select_columns(dataset: Dataset, op: SelectOperation) -> Dataset:
    """Keep only the listed columns, in schema order. An empty list keeps everything."""
    if not op.columns:
        return dataset.model_copy(deep=True)

    wanted = set(op.columns)
    order = [column_id for column_id in dataset.column_ids() if column_id in wanted]
    # Listed keys missing from the schema still survive, after the schema columns
    order += [column_id for column_id in dict.fromkeys(op.columns) if column_id not in order]

    rows = [{key: row[key] for key in order if key in row} for row in dataset.rows]
    columns = [column for column in dataset.columns if column.id in wanted]
    return Dataset(rows=rows, columns=columns)


def combine_datasets(sources: Sequence[Dataset], op: CombineOperation) -> Dataset:
    """
    Place selected columns of several datasets side by side, row by row.

    The result has as many rows as the longest source; shorter sources
    contribute None. On a column id collision the first source wins the
    schema entry.

    Raises:
        DatasetValidationError: If an input refers to a missing source
    """
    for item in op.inputs:
        if item.source_index >= len(sources):
            raise DatasetValidationError(
                f"Combine source {item.source_index} is not connected",
                details={"source_index": item.source_index, "source_count": len(sources)},
            )

    row_count = max((len(source.rows) for source in sources), default=0)
    rows = []
    for i in range(row_count):
        row = {}
        for item in op.inputs:
            source_rows = sources[item.source_index].rows
            source_row = source_rows[i] if i < len(source_rows) else {}
            for column_id in item.columns:
                row[column_id] = source_row.get(column_id)
        rows.append(row)

    columns: dict[str, ColumnMetadata] = {}
    for item in op.inputs:
        source = sources[item.source_index]
        for column_id in item.columns:
            metadata = source.get_column(column_id)
            if metadata is not None and column_id not in columns:
                columns[column_id] = metadata

    return Dataset(rows=rows, columns=list(columns.values()))


def set_column_unit(dataset: Dataset, column_id: str, unit: str | None) -> Dataset:
    """Return a copy of ``dataset`` with one column's unit replaced."""
    columns = [
        column.model_copy(update={"unit": unit or None}) if column.id == column_id else column
        for column in dataset.columns
    ]
    return Dataset(rows=[dict(row) for row in dataset.rows], columns=columns)


def apply_operation(
    dataset: Dataset,
    op: Operation,
    sources: Sequence[Dataset] | None = None,
) -> Dataset:
    """Apply a single operation."""
    if isinstance(op, DeleteOperation):
        return delete_column(dataset, op)
    if isinstance(op, RenameOperation):
        return rename_column(dataset, op)
    if isinstance(op, SelectOperation):
        return select_columns(dataset, op)
    if isinstance(op, SetUnitOperation):
        return set_column_unit(dataset, op.column, op.unit)
    if isinstance(op, CombineOperation):
        return combine_datasets(sources if sources is not None else [dataset], op)
    raise DatasetValidationError(f"Unknown operation: {type(op).__name__}")


def apply_operations(
    dataset: Dataset,
    operations: Sequence[Operation],
    sources: Sequence[Dataset] | None = None,
) -> BatchResult:
    """
    Apply operations in order.

    Args:
        dataset: Input dataset
        operations: Operations to apply
        sources: Datasets available to combine operations; defaults to
            just ``dataset``

    Returns:
        Success with the transformed dataset, or a validation failure
    """
    result = dataset
    try:
        for op in operations:
            result = apply_operation(result, op, sources)
    except DatasetValidationError as e:
        logger.info("Transform rejected", extra={"error": e.message})
        return BatchResult.fail(e.message)
    except (KeyError, TypeError, ValueError) as e:
        logger.info("Transform failed", extra={"error": str(e)})
        return BatchResult.fail(f"Transform failed: {e}")

    logger.debug(
        "Transform applied",
        extra={"operations": len(operations), "rows": len(result.rows)},
    )
    return BatchResult.ok(result)
