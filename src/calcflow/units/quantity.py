"""Unit-tagged numeric values."""

import math
import re
from dataclasses import dataclass, field

from calcflow.core.exceptions import UnitMismatchError
from calcflow.units.algebra import (
    UNITLESS,
    UnitExpression,
    divide_units,
    format_unit,
    multiply_units,
    parse_unit,
    units_compatible,
)

# Leading number with optional thousands commas and exponent, then the unit
_QUANTITY_PATTERN = re.compile(r"^(-?[\d,]*\.?\d+(?:[eE][-+]?\d+)?)\s*(.*)$")

SMALL_VALUE_THRESHOLD = 1e-4


@dataclass(frozen=True)
class UnitValue:
    """A number paired with a compound unit."""

    number: float
    unit: UnitExpression = field(default=UNITLESS)

    def __mul__(self, other: "UnitValue") -> "UnitValue":
        return UnitValue(self.number * other.number, multiply_units(self.unit, other.unit))

    def __truediv__(self, other: "UnitValue") -> "UnitValue":
        return UnitValue(_divide(self.number, other.number), divide_units(self.unit, other.unit))

    def __add__(self, other: "UnitValue") -> "UnitValue":
        self._check_compatible(other)
        return UnitValue(self.number + other.number, self.unit)

    def __sub__(self, other: "UnitValue") -> "UnitValue":
        self._check_compatible(other)
        return UnitValue(self.number - other.number, self.unit)

    def __neg__(self) -> "UnitValue":
        return UnitValue(-self.number, self.unit)

    def _check_compatible(self, other: "UnitValue") -> None:
        if not units_compatible(self.unit, other.unit):
            raise UnitMismatchError(format_unit(self.unit), format_unit(other.unit))

    def __str__(self) -> str:
        return format_quantity(self)


def _divide(left: float, right: float) -> float:
    """IEEE-style division: x/0 is signed infinity and 0/0 is NaN."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def parse_quantity_string(text: str | float | int) -> UnitValue:
    """
    Parse a literal like ``"100 kWh"``, ``"1,000.5 kg/L"`` or ``"10 m^2"``.

    Text without a leading number parses to unitless zero.
    """
    if isinstance(text, (int, float)):
        return UnitValue(float(text))

    match = _QUANTITY_PATTERN.match(str(text).strip())
    if not match:
        return UnitValue(0.0)

    number = float(match.group(1).replace(",", ""))
    return UnitValue(number, parse_unit(match.group(2)))


def parse_quantity(value: float | int | str, unit: str | None = None) -> UnitValue:
    """Build a ``UnitValue`` from a node's separate value and unit fields."""
    unit = (unit or "").strip()
    if isinstance(value, str):
        return parse_quantity_string(f"{value} {unit}".strip())
    return UnitValue(float(value), parse_unit(unit))


def format_number(value: float, max_fraction_digits: int = 10) -> str:
    """
    Format a number for display.

    Very small magnitudes use exponent notation; everything else is plain
    decimal with trailing zeros trimmed.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    if abs(value) < SMALL_VALUE_THRESHOLD:
        return f"{value:.4e}"

    text = f"{value:.{max_fraction_digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_quantity(value: UnitValue) -> str:
    """Format a ``UnitValue`` as ``"<number> <unit>"`` (number only when unitless)."""
    number = format_number(value.number)
    if value.unit.is_unitless:
        return number
    return f"{number} {format_unit(value.unit)}"
