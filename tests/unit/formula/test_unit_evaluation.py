"""Unit tests for unit-aware formula evaluation."""

import pytest

from calcflow.formula.units import Token, evaluate_with_units, tokenize
from calcflow.units.algebra import parse_unit
from calcflow.units.quantity import UnitValue


@pytest.fixture
def scope():
    return {
        "Fuel": UnitValue(1000.0, parse_unit("L")),
        "Factor": UnitValue(2.68, parse_unit("kg/L")),
        "Mass": UnitValue(500.0, parse_unit("kg")),
        "Time": UnitValue(2.0, parse_unit("h")),
    }


class TestTokenize:
    """Tests for tokenize."""

    def test_tokens(self):
        """Test identifier, symbol and number tokens."""
        assert tokenize("A1*2.5") == [
            Token("ident", "A1"),
            Token("symbol", "*"),
            Token("number", "2.5"),
        ]

    def test_unknown_characters_dropped(self):
        """Test that unsupported characters are skipped."""
        assert [t.text for t in tokenize("A $ B")] == ["A", "B"]


class TestEvaluateWithUnits:
    """Tests for evaluate_with_units."""

    def test_product_cancels_units(self, scope):
        """Test L times kg/L."""
        result = evaluate_with_units("Fuel*Factor", scope)
        assert result.number == pytest.approx(2680)
        assert result.unit == parse_unit("kg")

    def test_precedence_and_parentheses(self, scope):
        """Test grouping before division."""
        result = evaluate_with_units("(Fuel*Factor + Mass) / Time", scope)
        assert result.number == pytest.approx(1590)
        assert result.unit == parse_unit("kg/h")

    def test_numbers_are_unitless(self, scope):
        """Test scaling by a literal."""
        result = evaluate_with_units("Mass * 2", scope)
        assert result == UnitValue(1000.0, parse_unit("kg"))

    def test_negation(self, scope):
        """Test unary minus."""
        assert evaluate_with_units("-Mass", scope) == UnitValue(-500.0, parse_unit("kg"))

    def test_mismatched_addition(self, scope):
        """Test that adding kg and L gives no result."""
        assert evaluate_with_units("Mass + Fuel", scope) is None

    def test_unsupported_operator(self, scope):
        """Test that ^ is outside the grammar."""
        assert evaluate_with_units("Mass ^ 2", scope) is None

    @pytest.mark.parametrize("formula", ["", "   ", "Mass +", "(Mass * 2", "* Mass"])
    def test_incomplete_formulas(self, scope, formula):
        """Test formulas that cannot be consumed."""
        assert evaluate_with_units(formula, scope) is None

    def test_missing_variable_is_zero(self, scope):
        """Test the lenient default for unknown identifiers."""
        result = evaluate_with_units("Mass * Unknown", scope)
        assert result.number == 0
        assert result.unit == parse_unit("kg")

    def test_missing_variable_strict(self, scope):
        """Test strict mode rejects unknown identifiers."""
        assert evaluate_with_units("Mass * Unknown", scope, strict=True) is None
