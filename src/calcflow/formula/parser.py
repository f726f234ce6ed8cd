"""Formula parser for value-only formulas.

Parses formula strings into an AST using Lark.
"""

from dataclasses import dataclass
from typing import Any

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError

from calcflow.core.exceptions import FormulaSyntaxError
from calcflow.formula.grammar import FORMULA_GRAMMAR


# AST Node types
@dataclass
class NumberNode:
    value: float | int


@dataclass
class StringNode:
    value: str


@dataclass
class BooleanNode:
    value: bool | None  # None represents null


@dataclass
class SymbolNode:
    name: str


@dataclass
class FunctionCallNode:
    name: str
    arguments: list[Any]


@dataclass
class BinaryOpNode:
    operator: str
    left: Any
    right: Any


@dataclass
class UnaryOpNode:
    operator: str
    operand: Any


@dataclass
class ConditionalNode:
    condition: Any
    if_true: Any
    if_false: Any


def _binary(operator: str):
    @v_args(inline=True)
    def build(self, left, right):
        return BinaryOpNode(operator, left, right)

    return build


class FormulaTransformer(Transformer):
    """Transform Lark parse tree into AST nodes."""

    @v_args(inline=True)
    def number(self, token):
        value = float(token)
        # Keep as int if no decimal
        if value.is_integer() and "e" not in token.lower() and "." not in token:
            return NumberNode(int(value))
        return NumberNode(value)

    @v_args(inline=True)
    def string(self, token):
        return StringNode(str(token)[1:-1])

    def true(self, _items):
        return BooleanNode(True)

    def false(self, _items):
        return BooleanNode(False)

    def null(self, _items):
        return BooleanNode(None)

    @v_args(inline=True)
    def symbol(self, token):
        return SymbolNode(str(token))

    def function_call(self, items):
        name = str(items[0])
        args = list(items[1]) if len(items) > 1 and items[1] else []
        return FunctionCallNode(name, args)

    def arguments(self, items):
        return list(items)

    @v_args(inline=True)
    def ternary(self, condition, if_true, if_false):
        return ConditionalNode(condition, if_true, if_false)

    add = _binary("+")
    sub = _binary("-")
    mul = _binary("*")
    div = _binary("/")
    mod = _binary("%")
    pow = _binary("^")

    eq = _binary("==")
    ne = _binary("!=")
    lt = _binary("<")
    gt = _binary(">")
    le = _binary("<=")
    ge = _binary(">=")

    and_op = _binary("and")
    or_op = _binary("or")
    xor_op = _binary("xor")

    @v_args(inline=True)
    def not_op(self, operand):
        return UnaryOpNode("not", operand)

    @v_args(inline=True)
    def neg(self, operand):
        return UnaryOpNode("-", operand)

    @v_args(inline=True)
    def pos(self, operand):
        return UnaryOpNode("+", operand)


class FormulaParser:
    """
    Parser for value-only formulas.

    Parses formula strings into an AST that ``FormulaEvaluator`` evaluates.
    """

    def __init__(self):
        self._parser = Lark(
            FORMULA_GRAMMAR,
            parser="lalr",
            transformer=FormulaTransformer(),
        )

    def parse(self, formula: str) -> Any:
        """
        Parse a formula string into an AST.

        Args:
            formula: Formula string to parse

        Returns:
            AST root node

        Raises:
            FormulaSyntaxError: If formula syntax is invalid
        """
        try:
            return self._parser.parse(formula)
        except LarkError as e:
            raise FormulaSyntaxError(f"Invalid formula syntax: {e}", formula=formula) from e


_parser: FormulaParser | None = None


def get_parser() -> FormulaParser:
    """Lazily build the shared parser; compiling the grammar is not free."""
    global _parser
    if _parser is None:
        _parser = FormulaParser()
    return _parser
