"""Unit derivation for batch column formulas.

Recognizes a handful of exact binary patterns over ``[Name]`` references and
falls back to a left-to-right walk for anything else. The walk ignores
operator precedence and parentheses, so its result is an approximation and
carries a warning whenever ``+`` or ``-`` is involved.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass

from calcflow.units.algebra import (
    UNITLESS,
    UnitExpression,
    divide_units,
    format_unit,
    multiply_units,
    parse_unit,
    units_compatible,
)

REFERENCE_PATTERN = re.compile(r"\[([^\]]+)\]")

_PRODUCT_PATTERN = re.compile(r"^\s*\[([^\]]+)\]\s*([*/])\s*\[([^\]]+)\]\s*$")
_SUM_PATTERN = re.compile(r"^\s*\[([^\]]+)\]\s*([+\-])\s*\[([^\]]+)\]\s*$")
_SCALED_PATTERN = re.compile(
    r"^\s*(\d+\.?\d*)\s*\*\s*\[([^\]]+)\]\s*$|^\s*\[([^\]]+)\]\s*\*\s*(\d+\.?\d*)\s*$"
)
_COUNT_AGGREGATE = re.compile(r"\$COUNT_\[[^\]]+\]")
_AGGREGATE = re.compile(r"\$[A-Z]+_(\[[^\]]+\])")
_WALK_TOKEN = re.compile(r"\[([^\]]+)\]|([*/+\-])|(\d+\.?\d*)")

COMPLEX_ADD_SUB_WARNING = "Complex formula with +/- - verify units manually"


@dataclass(frozen=True)
class UnitDerivation:
    """Derived unit string plus an optional warning for the user."""

    unit: str
    warning: str | None = None


def _strip_aggregates(formula: str) -> str:
    # Counts are dimensionless; other aggregates keep their column's unit
    formula = _COUNT_AGGREGATE.sub("1", formula)
    return _AGGREGATE.sub(r"\1", formula)


def derive_unit_from_formula(
    formula: str,
    column_units: Mapping[str, str] | None = None,
    scalar_units: Mapping[str, str] | None = None,
) -> UnitDerivation:
    """
    Derive the unit of a batch formula's result.

    Args:
        formula: Original formula with ``[Name]`` references
        column_units: Column id -> unit string
        scalar_units: Scalar input name -> unit string

    Returns:
        Derived unit and optional warning
    """
    column_units = column_units or {}
    scalar_units = scalar_units or {}
    formula = _strip_aggregates(formula)

    names = REFERENCE_PATTERN.findall(formula)
    if not names:
        return UnitDerivation("unitless")

    ref_units: dict[str, UnitExpression] = {}
    for name in names:
        if column_units.get(name):
            ref_units[name] = parse_unit(column_units[name])
        elif scalar_units.get(name):
            ref_units[name] = parse_unit(scalar_units[name])
        else:
            ref_units[name] = UNITLESS

    match = _PRODUCT_PATTERN.match(formula)
    if match:
        left, op, right = match.groups()
        if op == "*":
            return UnitDerivation(format_unit(multiply_units(ref_units[left], ref_units[right])))
        return UnitDerivation(format_unit(divide_units(ref_units[left], ref_units[right])))

    match = _SUM_PATTERN.match(formula)
    if match:
        left_unit = ref_units[match.group(1)]
        right_unit = ref_units[match.group(3)]
        if not units_compatible(left_unit, right_unit):
            return UnitDerivation(
                format_unit(left_unit),
                f"Unit mismatch: {format_unit(left_unit)} vs {format_unit(right_unit)}",
            )
        return UnitDerivation(format_unit(left_unit))

    match = _SCALED_PATTERN.match(formula)
    if match:
        name = match.group(2) or match.group(3)
        return UnitDerivation(format_unit(ref_units[name]))

    return _walk_left_to_right(formula, ref_units)


def _walk_left_to_right(
    formula: str,
    ref_units: Mapping[str, UnitExpression],
) -> UnitDerivation:
    """Multiply/divide references in reading order; +/- keep the running unit."""
    current = UNITLESS
    last_op = "*"
    has_add_sub = False

    # Parentheses, function names and other characters are skipped
    for match in _WALK_TOKEN.finditer(formula):
        name, op, _number = match.groups()
        if op:
            last_op = op
        elif name is not None:
            unit = ref_units.get(name, UNITLESS)
            if last_op == "*":
                current = multiply_units(current, unit)
            elif last_op == "/":
                current = divide_units(current, unit)
            else:
                has_add_sub = True

    warning = COMPLEX_ADD_SUB_WARNING if has_add_sub else None
    return UnitDerivation(format_unit(current), warning)
