"""Unit tests for unit algebra."""

import pytest

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


class TestParseUnit:
    """Tests for parse_unit."""

    @pytest.mark.parametrize("text", ["", "   ", "unitless", "Unitless", None])
    def test_empty_and_unitless(self, text):
        """Test that empty input parses to the empty unit."""
        assert parse_unit(text) == UNITLESS

    def test_simple_ratio(self):
        """Test parsing a numerator/denominator unit."""
        assert parse_unit("kg/L") == UnitExpression(("kg",), ("L",))

    def test_space_separated_tokens(self):
        """Test that whitespace separates numerator tokens."""
        assert parse_unit("kg CO2/kWh") == UnitExpression(("kg", "CO2"), ("kWh",))

    def test_middle_dot_and_star_separators(self):
        """Test the · and * separators."""
        assert parse_unit("kg·m*s") == UnitExpression(("kg", "m", "s"), ())

    def test_caret_exponent(self):
        """Test caret exponents expand to repeated tokens."""
        assert parse_unit("m^3") == UnitExpression(("m", "m", "m"), ())

    def test_digit_suffix_exponent(self):
        """Test trailing digits act as an exponent."""
        assert parse_unit("m2") == UnitExpression(("m", "m"), ())

    def test_superscript_exponent(self):
        """Test superscript exponents."""
        assert parse_unit("kg·m²/s²") == UnitExpression(("kg", "m", "m"), ("s", "s"))

    @pytest.mark.parametrize("molecule", ["CO2", "co2", "H2O", "CH4", "N2O", "SO2"])
    def test_molecules_keep_their_digits(self, molecule):
        """Test that molecule names are not read as exponents."""
        assert parse_unit(molecule) == UnitExpression((molecule,), ())

    def test_negative_exponent_moves_to_denominator(self):
        """Test that s^-1 in the numerator becomes a denominator token."""
        assert parse_unit("m s^-1") == UnitExpression(("m",), ("s",))

    def test_negative_exponent_in_denominator_moves_to_numerator(self):
        """Test that a negative exponent after the slash becomes a numerator token."""
        assert parse_unit("kg/s^-2") == UnitExpression(("kg", "s", "s"), ())

    def test_zero_exponent_drops_token(self):
        """Test that a zero exponent removes the token."""
        assert parse_unit("kg m^0") == UnitExpression(("kg",), ())

    def test_per_unit(self):
        """Test a leading 1 numerator."""
        assert parse_unit("1/s") == UnitExpression((), ("s",))

    def test_parsed_units_are_simplified(self):
        """Test that matching tokens cancel while parsing."""
        assert parse_unit("kg m/m") == UnitExpression(("kg",), ())


class TestSimplifyUnit:
    """Tests for simplify_unit."""

    def test_cancels_one_per_match(self):
        """Test that each denominator token cancels one numerator token."""
        expr = UnitExpression(("m", "m", "kg"), ("m", "s"))
        assert simplify_unit(expr) == UnitExpression(("m", "kg"), ("s",))

    def test_order_independent(self):
        """Test cancellation regardless of position."""
        expr = UnitExpression(("s", "kg"), ("kg",))
        assert simplify_unit(expr) == UnitExpression(("s",), ())

    def test_no_shared_tokens_after_simplify(self):
        """Test that no token appears on both sides afterwards."""
        expr = simplify_unit(UnitExpression(("a", "b", "a", "c"), ("a", "c", "c")))
        assert not set(expr.numerator) & set(expr.denominator)


class TestMultiplyDivide:
    """Tests for multiply_units and divide_units."""

    def test_multiply_cancels(self):
        """Test that L × kg/L gives kg."""
        result = multiply_units(parse_unit("L"), parse_unit("kg/L"))
        assert result == UnitExpression(("kg",), ())

    def test_divide_cancels(self):
        """Test that kWh ÷ kWh is unitless."""
        assert divide_units(parse_unit("kWh"), parse_unit("kWh")).is_unitless

    def test_operators(self):
        """Test the * and / operators on UnitExpression."""
        kg = parse_unit("kg")
        s = parse_unit("s")
        assert format_unit(kg / s) == "kg/s"
        assert format_unit((kg / s) * s) == "kg"

    @pytest.mark.parametrize(
        "u, v",
        [
            ("kg", "L"),
            ("kg·m²/s²", "s"),
            ("kg CO2/kWh", "kWh"),
            ("unitless", "m^3"),
            ("1/s", "1/s"),
        ],
    )
    def test_divide_then_multiply_round_trips(self, u, v):
        """Test that dividing by V then multiplying by V restores U."""
        U, V = parse_unit(u), parse_unit(v)
        assert units_compatible(multiply_units(divide_units(U, V), V), simplify_unit(U))


class TestFormatUnit:
    """Tests for format_unit."""

    def test_unitless(self):
        """Test formatting the empty unit."""
        assert format_unit(UNITLESS) == "unitless"

    def test_numerator_only(self):
        """Test formatting a numerator-only unit."""
        assert format_unit(parse_unit("kg")) == "kg"

    def test_denominator_only(self):
        """Test formatting a denominator-only unit."""
        assert format_unit(parse_unit("1/s")) == "1/s"

    def test_powers(self):
        """Test squares, cubes and higher powers."""
        assert format_unit(UnitExpression(("m", "m"), ())) == "m²"
        assert format_unit(UnitExpression(("m", "m", "m"), ())) == "m³"
        assert format_unit(UnitExpression(("m",) * 4, ())) == "m^4"

    def test_groups_in_first_occurrence_order(self):
        """Test grouping repeated tokens with · joins."""
        expr = UnitExpression(("kg", "m", "kg"), ("s", "s"))
        assert format_unit(expr) == "kg²·m/s²"

    def test_str(self):
        """Test that str() formats the unit."""
        assert str(parse_unit("kg/L")) == "kg/L"


class TestUnitsCompatible:
    """Tests for units_compatible."""

    @pytest.mark.parametrize("unit", ["", "kg", "kg/L", "kg·m²/s²", "kg CO2/kWh"])
    def test_reflexive(self, unit):
        """Test that a unit is compatible with itself."""
        expr = parse_unit(unit)
        assert units_compatible(expr, expr)

    def test_order_insensitive(self):
        """Test that token order does not matter."""
        assert units_compatible(parse_unit("kg m"), parse_unit("m kg"))

    def test_differing_token(self):
        """Test that an uncancelled token makes units incompatible."""
        assert not units_compatible(parse_unit("kg"), parse_unit("L"))
        assert not units_compatible(parse_unit("kg/L"), parse_unit("kg"))
        assert not units_compatible(parse_unit("m"), parse_unit("m²"))

    def test_compatible_after_simplification(self):
        """Test comparison of unsimplified expressions."""
        a = UnitExpression(("kg", "s"), ("s",))
        assert units_compatible(a, parse_unit("kg"))
