"""Unit algebra, unit-tagged values and formula unit derivation."""

from calcflow.units.algebra import (
    UNITLESS,
    UnitExpression,
    divide_units,
    format_unit,
    multiply_units,
    parse_unit,
    simplify_unit,
    units_compatible,
)
from calcflow.units.derivation import UnitDerivation, derive_unit_from_formula
from calcflow.units.quantity import (
    UnitValue,
    format_number,
    format_quantity,
    parse_quantity,
    parse_quantity_string,
)

__all__ = [
    "UNITLESS",
    "UnitExpression",
    "UnitValue",
    "UnitDerivation",
    "parse_unit",
    "simplify_unit",
    "multiply_units",
    "divide_units",
    "format_unit",
    "units_compatible",
    "parse_quantity",
    "parse_quantity_string",
    "format_number",
    "format_quantity",
    "derive_unit_from_formula",
]
