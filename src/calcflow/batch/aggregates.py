"""Whole-column aggregates for batch formulas.

``$SUM_[Col]``, ``$AVG_[Col]``, ``$MIN_[Col]``, ``$MAX_[Col]`` and
``$COUNT_[Col]`` are computed once per evaluation, before any row is
evaluated, and bound as constants in every row's scope.
"""

import math
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

AGGREGATE_PATTERN = re.compile(r"\$([A-Z]+)_\[([^\]]+)\]")

AggregateFunction = Callable[[list[float]], float]

AGGREGATE_FUNCTIONS: dict[str, AggregateFunction] = {
    "SUM": lambda values: math.fsum(values),
    "AVG": lambda values: math.fsum(values) / len(values),
    "MIN": min,
    "MAX": max,
    "COUNT": lambda values: len(values),
}


@dataclass(frozen=True)
class AggregateReference:
    """One ``$FUNC_[Column]`` occurrence in a formula."""

    function: str
    column: str
    syntax: str


def detect_aggregates(formula: str) -> list[AggregateReference]:
    """Find distinct aggregate references in order of first appearance."""
    found: dict[str, AggregateReference] = {}
    for match in AGGREGATE_PATTERN.finditer(formula):
        found.setdefault(match.group(0), AggregateReference(match.group(1), match.group(2), match.group(0)))
    return list(found.values())


def numeric_value(value: Any) -> float | None:
    """Numeric reading of a cell, or None for null and non-numeric cells."""
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def compute_aggregate(function: str, column: str, rows: Iterable[Mapping[str, Any]]) -> float | None:
    """
    Aggregate a column over all rows.

    Returns None when no cell is numeric or the function name is unknown.
    """
    aggregate = AGGREGATE_FUNCTIONS.get(function)
    if aggregate is None:
        return None

    values = [v for v in (numeric_value(row.get(column)) for row in rows) if v is not None]
    if not values:
        return None
    return aggregate(values)
