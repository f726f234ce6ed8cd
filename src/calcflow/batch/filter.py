"""Row filter for batch datasets."""

import operator
from collections.abc import Callable
from typing import Any

from calcflow.batch.aggregates import numeric_value
from calcflow.batch.models import BatchResult, Dataset, FilterCriteria, FilterMode
from calcflow.core.logging import get_logger
from calcflow.formula.functions import to_text

logger = get_logger(__name__)

NO_SOURCE_DATA_MESSAGE = "No source data connected"

_ABSENT = object()

_ORDERING: dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


def _number(value: Any) -> float | None:
    """Numeric reading for comparisons: null cells read as 0, absent cells as non-numeric."""
    if value is None:
        return 0.0
    if value is _ABSENT:
        return None
    return numeric_value(value)


def _compare(op: str, left: Any, right: Any) -> bool:
    left_number = _number(left)
    right_number = _number(right)
    left = None if left is _ABSENT else left
    right = None if right is _ABSENT else right
    if left_number is not None and right_number is not None:
        left, right = left_number, right_number
        both_comparable = True
    else:
        both_comparable = isinstance(left, str) and isinstance(right, str)

    if op in _ORDERING:
        return both_comparable and _ORDERING[op](left, right)
    if op == "==":
        return left == right
    if op == "!=":
        return left != right
    if op == "contains":
        return to_text(right).lower() in to_text(left).lower()
    # Unrecognized operators keep every row
    return True


def row_matches(row: dict[str, Any], criteria: FilterCriteria) -> bool:
    """Evaluate the filter predicate for one row."""
    compare_value = criteria.value
    if criteria.mode == FilterMode.COLUMN:
        compare_value = row.get(str(criteria.value), _ABSENT)
    return _compare(criteria.operator, row.get(criteria.column, _ABSENT), compare_value)


def filter_rows(dataset: Dataset, criteria: FilterCriteria) -> BatchResult:
    """
    Keep the rows that satisfy ``criteria``; the schema is unchanged.

    Values compare numerically when both sides read as numbers, otherwise
    as-is. ``contains`` is a case-insensitive substring test.
    """
    if not dataset.rows:
        return BatchResult.fail(NO_SOURCE_DATA_MESSAGE)

    try:
        rows = [dict(row) for row in dataset.rows if row_matches(row, criteria)]
    except (TypeError, ValueError) as e:
        logger.info("Filter failed", extra={"column": criteria.column, "error": str(e)})
        return BatchResult.fail(f"Filter failed: {e}")

    logger.debug(
        "Rows filtered",
        extra={"column": criteria.column, "operator": criteria.operator, "kept": len(rows)},
    )
    return BatchResult.ok(Dataset(rows=rows, columns=list(dataset.columns)))
