"""Unit tests for unit-tagged values."""

import math

import pytest

from calcflow.core.exceptions import UnitMismatchError
from calcflow.units.algebra import UNITLESS, parse_unit
from calcflow.units.quantity import (
    UnitValue,
    format_number,
    format_quantity,
    parse_quantity,
    parse_quantity_string,
)


class TestParseQuantity:
    """Tests for parse_quantity_string and parse_quantity."""

    def test_number_and_unit(self):
        """Test parsing '100 kWh'."""
        value = parse_quantity_string("100 kWh")
        assert value.number == 100
        assert value.unit == parse_unit("kWh")

    def test_thousands_separators(self):
        """Test that commas are stripped from the number."""
        value = parse_quantity_string("1,000.5 kg/L")
        assert value.number == 1000.5
        assert value.unit == parse_unit("kg/L")

    def test_bare_number_is_unitless(self):
        """Test a number without unit."""
        value = parse_quantity_string("42")
        assert value == UnitValue(42.0)

    def test_numeric_input(self):
        """Test that numbers pass straight through."""
        assert parse_quantity_string(2.5) == UnitValue(2.5)

    def test_unparseable_is_zero(self):
        """Test that text without a leading number is unitless zero."""
        assert parse_quantity_string("abc") == UnitValue(0.0)

    def test_negative_and_exponent(self):
        """Test negative numbers and exponent notation."""
        assert parse_quantity_string("-1.5e3 m").number == -1500.0

    def test_value_and_unit_fields(self):
        """Test building from separate value and unit fields."""
        value = parse_quantity(2.68, "kg/L")
        assert value.number == 2.68
        assert value.unit == parse_unit("kg/L")

    def test_value_field_may_be_text(self):
        """Test a value field holding a literal."""
        assert parse_quantity("1,000", "L") == UnitValue(1000.0, parse_unit("L"))

    def test_empty_unit(self):
        """Test a blank unit field."""
        assert parse_quantity(5, "").unit == UNITLESS


class TestUnitValueArithmetic:
    """Tests for UnitValue operators."""

    def test_multiply(self):
        """Test multiplication combines units."""
        result = UnitValue(1000, parse_unit("L")) * UnitValue(2.68, parse_unit("kg/L"))
        assert result.number == pytest.approx(2680)
        assert result.unit == parse_unit("kg")

    def test_divide(self):
        """Test division combines units."""
        result = UnitValue(10, parse_unit("kg")) / UnitValue(2, parse_unit("s"))
        assert result == UnitValue(5.0, parse_unit("kg/s"))

    def test_divide_by_zero(self):
        """Test IEEE division semantics."""
        assert UnitValue(1.0) / UnitValue(0.0) == UnitValue(math.inf)
        assert UnitValue(-1.0) / UnitValue(0.0) == UnitValue(-math.inf)
        assert math.isnan((UnitValue(0.0) / UnitValue(0.0)).number)

    def test_add_compatible(self):
        """Test adding values with the same unit."""
        result = UnitValue(1, parse_unit("kg")) + UnitValue(2, parse_unit("kg"))
        assert result == UnitValue(3, parse_unit("kg"))

    def test_subtract_compatible(self):
        """Test subtracting values with the same unit."""
        result = UnitValue(5, parse_unit("kg")) - UnitValue(2, parse_unit("kg"))
        assert result.number == 3

    def test_add_mismatch_raises(self):
        """Test adding incompatible units."""
        with pytest.raises(UnitMismatchError) as exc_info:
            UnitValue(1, parse_unit("kg")) + UnitValue(1, parse_unit("L"))
        assert exc_info.value.message == "Unit mismatch: kg vs L"

    def test_negate(self):
        """Test unary minus keeps the unit."""
        assert -UnitValue(2, parse_unit("m")) == UnitValue(-2, parse_unit("m"))


class TestFormatting:
    """Tests for format_number and format_quantity."""

    def test_zero(self):
        """Test zero formats as 0."""
        assert format_number(0.0) == "0"

    def test_integral(self):
        """Test integral values drop the fraction."""
        assert format_number(2680.0) == "2680"

    def test_no_grouping(self):
        """Test that large values have no thousands separators."""
        assert format_number(1234567.5) == "1234567.5"

    def test_small_values_use_exponent(self):
        """Test values below 1e-4 use exponent notation."""
        assert format_number(0.000012345678) == "1.2346e-05"

    def test_trailing_zeros_trimmed(self):
        """Test fractional trimming."""
        assert format_number(0.25) == "0.25"

    def test_precision(self):
        """Test the fraction digit limit."""
        assert format_number(2 / 3, 4) == "0.6667"

    def test_non_finite(self):
        """Test NaN and infinities."""
        assert format_number(math.nan) == "NaN"
        assert format_number(math.inf) == "Infinity"
        assert format_number(-math.inf) == "-Infinity"

    def test_quantity_with_unit(self):
        """Test number followed by the unit."""
        assert format_quantity(UnitValue(2680.0, parse_unit("kg"))) == "2680 kg"

    def test_unitless_quantity(self):
        """Test that unitless values print only the number."""
        assert format_quantity(UnitValue(3.5)) == "3.5"
        assert str(UnitValue(1.0, parse_unit("1/s"))) == "1 1/s"
