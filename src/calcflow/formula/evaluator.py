"""Formula evaluator for value-only formulas.

Evaluates parsed formula ASTs against a scope of plain values.
"""

import math
from typing import Any

from calcflow.core.exceptions import FormulaEvaluationError
from calcflow.formula.functions import (
    CONSTANTS,
    FORMULA_FUNCTIONS,
    is_truthy,
    to_number,
    to_text,
)
from calcflow.formula.parser import (
    BinaryOpNode,
    BooleanNode,
    ConditionalNode,
    FunctionCallNode,
    NumberNode,
    StringNode,
    SymbolNode,
    UnaryOpNode,
    get_parser,
)
from calcflow.units.quantity import _divide

# Callable forms of the logical keywords, e.g. and(a, b)
_LOGICAL_FUNCTIONS = {
    "and": lambda left, right: is_truthy(left) and is_truthy(right),
    "or": lambda left, right: is_truthy(left) or is_truthy(right),
    "xor": lambda left, right: is_truthy(left) != is_truthy(right),
    "not": lambda value: not is_truthy(value),
}


class FormulaEvaluator:
    """
    Evaluates formula ASTs against a scope.

    Identifiers resolve from the scope first, then from the ``pi``/``e``
    constants. Arithmetic follows IEEE float semantics.
    """

    def __init__(self, scope: dict[str, Any] | None = None):
        """
        Initialize evaluator with optional scope values.

        Args:
            scope: Dictionary mapping identifiers to their values
        """
        self._scope = scope or {}

    def evaluate(self, ast: Any, scope: dict[str, Any] | None = None) -> Any:
        """
        Evaluate an AST node.

        Args:
            ast: AST node to evaluate
            scope: Optional scope (overrides constructor values)

        Returns:
            Evaluation result
        """
        if scope is not None:
            self._scope = scope

        return self._eval(ast)

    def _eval(self, node: Any) -> Any:
        """Recursively evaluate an AST node."""
        if isinstance(node, (NumberNode, StringNode, BooleanNode)):
            return node.value

        if isinstance(node, SymbolNode):
            return self._resolve(node.name)

        if isinstance(node, FunctionCallNode):
            return self._eval_function(node)

        if isinstance(node, BinaryOpNode):
            return self._eval_binary(node)

        if isinstance(node, UnaryOpNode):
            return self._eval_unary(node)

        if isinstance(node, ConditionalNode):
            if is_truthy(self._eval(node.condition)):
                return self._eval(node.if_true)
            return self._eval(node.if_false)

        raise FormulaEvaluationError(f"Unsupported expression: {type(node).__name__}")

    def _resolve(self, name: str) -> Any:
        if name in self._scope:
            return self._scope[name]
        if name in CONSTANTS:
            return CONSTANTS[name]
        raise FormulaEvaluationError(f"Undefined symbol {name}")

    def _eval_function(self, node: FunctionCallNode) -> Any:
        """Evaluate a function call."""
        func = FORMULA_FUNCTIONS.get(node.name) or _LOGICAL_FUNCTIONS.get(node.name)
        if func is None:
            raise FormulaEvaluationError(f"Undefined function {node.name}")

        args = [self._eval(arg) for arg in node.arguments]

        try:
            return func(*args)
        except TypeError as e:
            raise FormulaEvaluationError(f"Wrong number of arguments in function {node.name}") from e

    def _eval_binary(self, node: BinaryOpNode) -> Any:
        """Evaluate a binary operation."""
        left = self._eval(node.left)
        right = self._eval(node.right)
        op = node.operator

        # Arithmetic operators
        if op == "+":
            return to_number(left) + to_number(right)
        if op == "-":
            return to_number(left) - to_number(right)
        if op == "*":
            return to_number(left) * to_number(right)
        if op == "/":
            return _divide(to_number(left), to_number(right))
        if op == "%":
            return FORMULA_FUNCTIONS["mod"](left, right)
        if op == "^":
            return FORMULA_FUNCTIONS["pow"](left, right)

        # Comparison operators
        if op in ("==", "!="):
            equal = self._equal(left, right)
            return equal if op == "==" else not equal
        if op in ("<", ">", "<=", ">="):
            return self._compare(op, left, right)

        # Logical operators
        if op in _LOGICAL_FUNCTIONS:
            return _LOGICAL_FUNCTIONS[op](left, right)

        raise FormulaEvaluationError(f"Unknown operator: {op}")

    def _eval_unary(self, node: UnaryOpNode) -> Any:
        """Evaluate a unary operation."""
        operand = self._eval(node.operand)
        op = node.operator

        if op == "-":
            return -to_number(operand)
        if op == "+":
            return to_number(operand)
        if op == "not":
            return not is_truthy(operand)

        raise FormulaEvaluationError(f"Unknown unary operator: {op}")

    # ==========================================================================
    # Comparison Implementations
    # ==========================================================================

    def _equal(self, left: Any, right: Any) -> bool:
        """Strings compare as text, everything else numerically."""
        if isinstance(left, str) or isinstance(right, str):
            return to_text(left) == to_text(right)
        return to_number(left) == to_number(right)

    def _compare(self, op: str, left: Any, right: Any) -> bool:
        if isinstance(left, str) and isinstance(right, str):
            a, b = left, right
        else:
            a, b = to_number(left), to_number(right)
            if math.isnan(a) or math.isnan(b):
                return False

        if op == "<":
            return a < b
        if op == ">":
            return a > b
        if op == "<=":
            return a <= b
        return a >= b


def evaluate_value(formula: str, scope: dict[str, Any] | None = None) -> Any:
    """
    Parse and evaluate a formula in one step.

    Raises:
        FormulaSyntaxError: If the formula does not parse
        FormulaEvaluationError: If evaluation fails
    """
    ast = get_parser().parse(formula)
    return FormulaEvaluator(scope).evaluate(ast)
