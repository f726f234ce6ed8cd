"""Unit algebra for compound physical units.

A unit is kept as two multisets of base tokens, e.g. ``kg·m²/s²`` is
numerator ``(kg, m, m)`` and denominator ``(s, s)``. Tokens are opaque
strings: no conversion between ``g`` and ``kg`` is attempted, so units only
cancel or match when their tokens are identical.
"""

import re
from collections import Counter
from dataclasses import dataclass

# Molecule names whose trailing digit is part of the name, not an exponent
MOLECULE_NAMES = frozenset({"CO2", "H2O", "SO2", "NO2", "CH4", "N2O", "O2", "N2", "H2"})

SUPERSCRIPT_EXPONENTS = {"²": 2, "³": 3, "⁴": 4, "⁵": 5}

_TOKEN_SEPARATOR = re.compile(r"[·*\s]+")
_CARET_EXPONENT = re.compile(r"^([A-Za-z%°]+)\^(-?\d+)$")
_SUPERSCRIPT_EXPONENT = re.compile(r"^([A-Za-z%°]+)([²³⁴⁵])$")
_DIGIT_EXPONENT = re.compile(r"^([A-Za-z]+)(\d+)$")


@dataclass(frozen=True)
class UnitExpression:
    """Compound unit as numerator and denominator token multisets."""

    numerator: tuple[str, ...] = ()
    denominator: tuple[str, ...] = ()

    @property
    def is_unitless(self) -> bool:
        return not self.numerator and not self.denominator

    def __mul__(self, other: "UnitExpression") -> "UnitExpression":
        return multiply_units(self, other)

    def __truediv__(self, other: "UnitExpression") -> "UnitExpression":
        return divide_units(self, other)

    def __str__(self) -> str:
        return format_unit(self)


UNITLESS = UnitExpression()


def _split_token(token: str) -> tuple[str, int]:
    """Split a single token into its base unit and exponent."""
    if token.upper() in MOLECULE_NAMES:
        return token, 1

    match = _CARET_EXPONENT.match(token)
    if match:
        return match.group(1), int(match.group(2))

    match = _SUPERSCRIPT_EXPONENT.match(token)
    if match:
        return match.group(1), SUPERSCRIPT_EXPONENTS[match.group(2)]

    match = _DIGIT_EXPONENT.match(token)
    if match:
        return match.group(1), int(match.group(2))

    return token, 1


def _parse_part(part: str) -> tuple[list[str], list[str]]:
    """
    Parse one side of a unit string, e.g. ``"kg·m²"``.

    Returns:
        Tokens that stay on this side and tokens that move to the other
        side because of a negative exponent.
    """
    same_side: list[str] = []
    other_side: list[str] = []

    for token in _TOKEN_SEPARATOR.split(part):
        token = token.strip()
        # "1/s" has a dimensionless "1" numerator
        if not token or token == "1":
            continue

        base, exponent = _split_token(token)
        if exponent > 0:
            same_side.extend([base] * exponent)
        elif exponent < 0:
            other_side.extend([base] * -exponent)

    return same_side, other_side


def parse_unit(unit: str | None) -> UnitExpression:
    """
    Parse a unit string like ``"kg·m²/s²"`` or ``"kg CO2/kWh"``.

    Everything after the first ``/`` is denominator, so ``"kg/m/s"`` reads
    as ``kg/(m·s)``. Empty strings and ``"unitless"`` parse to the empty unit.

    Args:
        unit: Unit string

    Returns:
        Simplified unit expression
    """
    if unit is None:
        return UNITLESS
    unit = unit.strip()
    if not unit or unit.lower() == "unitless":
        return UNITLESS

    parts = unit.split("/")
    numerator, denominator = _parse_part(parts[0])

    for part in parts[1:]:
        den_tokens, num_tokens = _parse_part(part)
        denominator.extend(den_tokens)
        numerator.extend(num_tokens)

    return simplify_unit(UnitExpression(tuple(numerator), tuple(denominator)))


def simplify_unit(expr: UnitExpression) -> UnitExpression:
    """Cancel tokens that appear in both numerator and denominator."""
    denominator = list(expr.denominator)
    numerator: list[str] = []

    for token in expr.numerator:
        if token in denominator:
            denominator.remove(token)
        else:
            numerator.append(token)

    return UnitExpression(tuple(numerator), tuple(denominator))


def multiply_units(a: UnitExpression, b: UnitExpression) -> UnitExpression:
    """Multiply two units and cancel the result."""
    return simplify_unit(
        UnitExpression(a.numerator + b.numerator, a.denominator + b.denominator)
    )


def divide_units(a: UnitExpression, b: UnitExpression) -> UnitExpression:
    """Divide unit ``a`` by unit ``b`` and cancel the result."""
    return simplify_unit(
        UnitExpression(a.numerator + b.denominator, a.denominator + b.numerator)
    )


def _format_part(tokens: tuple[str, ...]) -> str:
    pieces = []
    for token, count in Counter(tokens).items():
        if count == 1:
            pieces.append(token)
        elif count == 2:
            pieces.append(f"{token}²")
        elif count == 3:
            pieces.append(f"{token}³")
        else:
            pieces.append(f"{token}^{count}")
    return "·".join(pieces)


def format_unit(expr: UnitExpression) -> str:
    """
    Format a unit expression back to a display string.

    Repeated tokens are grouped in first-occurrence order. Returns
    ``"unitless"`` for the empty unit and ``"1/s"`` style strings when only
    a denominator remains.
    """
    numerator = _format_part(expr.numerator)
    denominator = _format_part(expr.denominator)

    if not denominator:
        return numerator or "unitless"
    if not numerator:
        return f"1/{denominator}"
    return f"{numerator}/{denominator}"


def units_compatible(a: UnitExpression, b: UnitExpression) -> bool:
    """Check whether two units may be added or subtracted."""
    a = simplify_unit(a)
    b = simplify_unit(b)
    return sorted(a.numerator) == sorted(b.numerator) and sorted(a.denominator) == sorted(
        b.denominator
    )
