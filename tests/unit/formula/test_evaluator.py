"""Unit tests for value-only formula evaluation."""

import math

import pytest

from calcflow.core.exceptions import FormulaEvaluationError, FormulaSyntaxError
from calcflow.formula.evaluator import FormulaEvaluator, evaluate_value
from calcflow.formula.parser import get_parser


class TestArithmetic:
    """Tests for arithmetic operators."""

    def test_precedence(self):
        """Test operator precedence."""
        assert evaluate_value("1 + 2 * 3") == 7

    def test_division(self):
        """Test true division."""
        assert evaluate_value("10 / 4") == 2.5

    def test_division_by_zero(self):
        """Test IEEE division results."""
        assert evaluate_value("1 / 0") == math.inf
        assert evaluate_value("-1 / 0") == -math.inf
        assert math.isnan(evaluate_value("0 / 0"))

    def test_modulo_is_floored(self):
        """Test that % follows the divisor's sign."""
        assert evaluate_value("7 % 3") == 1
        assert evaluate_value("-7 % 3") == 2
        assert evaluate_value("5 % 0") == 5

    def test_power(self):
        """Test exponentiation."""
        assert evaluate_value("2 ^ 10") == 1024

    def test_power_domain_error_is_nan(self):
        """Test fractional powers of negatives."""
        assert math.isnan(evaluate_value("(-8) ^ (1 / 3)"))

    def test_unary(self):
        """Test unary minus and plus."""
        assert evaluate_value("-x + +2", {"x": 5}) == -3

    def test_null_counts_as_zero(self):
        """Test that null operands are treated as 0."""
        assert evaluate_value("x * 2 + 1", {"x": None}) == 1

    def test_numeric_strings(self):
        """Test that numeric text is coerced."""
        assert evaluate_value('"5" * 2') == 10

    def test_non_numeric_string_raises(self):
        """Test arithmetic on text."""
        with pytest.raises(FormulaEvaluationError) as exc_info:
            evaluate_value('"abc" + 1')
        assert exc_info.value.message == 'Cannot convert "abc" to a number'


class TestComparisons:
    """Tests for comparison and logical operators."""

    def test_string_equality(self):
        """Test string equality."""
        assert evaluate_value('name == "A"', {"name": "A"}) is True
        assert evaluate_value('name != "A"', {"name": "B"}) is True

    def test_number_equals_numeric_text(self):
        """Test that 10 and "10" compare equal."""
        assert evaluate_value('x == "10"', {"x": 10.0}) is True

    def test_numeric_ordering(self):
        """Test numeric comparisons."""
        assert evaluate_value("x >= 3", {"x": 3}) is True
        assert evaluate_value('"10" > 9') is True

    def test_string_ordering(self):
        """Test lexicographic comparison of two strings."""
        assert evaluate_value('"b" > "a"') is True

    def test_nan_comparisons_are_false(self):
        """Test that NaN never orders."""
        assert evaluate_value("x < 1", {"x": math.nan}) is False
        assert evaluate_value("x > 1", {"x": math.nan}) is False

    def test_logical_keywords(self):
        """Test and/or/xor/not."""
        assert evaluate_value("true and false") is False
        assert evaluate_value("true or false") is True
        assert evaluate_value("true xor true") is False
        assert evaluate_value("not false") is True

    def test_ternary(self):
        """Test the conditional operator."""
        assert evaluate_value('x > 1 ? "big" : "small"', {"x": 5}) == "big"
        assert evaluate_value('x > 1 ? "big" : "small"', {"x": 0}) == "small"

    def test_nan_is_falsy(self):
        """Test NaN in a condition."""
        assert evaluate_value("x ? 1 : 2", {"x": math.nan}) == 2


class TestSymbolsAndFunctions:
    """Tests for identifier and function resolution."""

    def test_constants(self):
        """Test pi and e."""
        assert evaluate_value("pi") == math.pi
        assert evaluate_value("e") == math.e

    def test_scope_shadows_constants(self):
        """Test that scope values win over constants."""
        assert evaluate_value("e * 2", {"e": 4}) == 8

    def test_undefined_symbol(self):
        """Test resolving an unknown name."""
        with pytest.raises(FormulaEvaluationError) as exc_info:
            evaluate_value("missing + 1")
        assert exc_info.value.message == "Undefined symbol missing"

    def test_undefined_function(self):
        """Test calling an unknown function."""
        with pytest.raises(FormulaEvaluationError, match="Undefined function nope"):
            evaluate_value("nope(1)")

    def test_wrong_argument_count(self):
        """Test calling a function with too many arguments."""
        with pytest.raises(FormulaEvaluationError) as exc_info:
            evaluate_value("sqrt(1, 2)")
        assert exc_info.value.message == "Wrong number of arguments in function sqrt"

    def test_nested_functions(self):
        """Test nested calls."""
        assert evaluate_value('IF(max(a, b) > 5, "high", "low")', {"a": 2, "b": 7}) == "high"

    def test_syntax_error_propagates(self):
        """Test that parse errors raise FormulaSyntaxError."""
        with pytest.raises(FormulaSyntaxError):
            evaluate_value("1 +")


class TestFormulaEvaluator:
    """Tests for reusing an evaluator across scopes."""

    def test_scope_override(self):
        """Test that a scope passed to evaluate replaces the initial scope."""
        ast = get_parser().parse("x * 2")
        evaluator = FormulaEvaluator({"x": 1})
        assert evaluator.evaluate(ast) == 2
        assert evaluator.evaluate(ast, {"x": 5}) == 10
