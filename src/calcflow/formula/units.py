"""Unit-aware formula evaluation for scalar process nodes.

A small recursive-descent evaluator over ``UnitValue`` operands:

    expression := term (('+'|'-') term)*
    term       := factor (('*'|'/') factor)*
    factor     := '(' expression ')' | IDENT | NUMBER | '-' factor

Anything the grammar cannot consume (``^``, dangling operators, unmatched
parentheses) yields no result so callers can fall back to value-only
evaluation.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass

from calcflow.core.exceptions import UnitMismatchError
from calcflow.core.logging import get_logger
from calcflow.units.quantity import UnitValue

logger = get_logger(__name__)

_TOKEN_PATTERN = re.compile(
    r"(?P<ident>[A-Za-z][A-Za-z0-9_]*)|(?P<number>\d+\.?\d*|\.\d+)|(?P<symbol>[+\-*/()^])"
)


@dataclass(frozen=True)
class Token:
    kind: str  # "ident", "number" or "symbol"
    text: str


class _Unresolvable(Exception):
    """Raised internally when the formula cannot be evaluated with units."""


def tokenize(formula: str) -> list[Token]:
    """Split a formula into tokens; unknown characters are dropped."""
    return [
        Token(match.lastgroup, match.group())
        for match in _TOKEN_PATTERN.finditer(formula)
    ]


class _UnitEvaluator:
    def __init__(self, tokens: list[Token], scope: Mapping[str, UnitValue], strict: bool):
        self.tokens = tokens
        self.position = 0
        self.scope = scope
        self.strict = strict

    def _peek(self) -> Token | None:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _take(self) -> Token:
        token = self._peek()
        if token is None:
            raise _Unresolvable("unexpected end of formula")
        self.position += 1
        return token

    def _at_symbol(self, *symbols: str) -> bool:
        token = self._peek()
        return token is not None and token.kind == "symbol" and token.text in symbols

    def parse(self) -> UnitValue:
        result = self.expression()
        if self.position != len(self.tokens):
            raise _Unresolvable(f"unexpected token {self.tokens[self.position].text!r}")
        return result

    def expression(self) -> UnitValue:
        result = self.term()
        while self._at_symbol("+", "-"):
            op = self._take().text
            right = self.term()
            result = result + right if op == "+" else result - right
        return result

    def term(self) -> UnitValue:
        result = self.factor()
        while self._at_symbol("*", "/"):
            op = self._take().text
            right = self.factor()
            result = result * right if op == "*" else result / right
        return result

    def factor(self) -> UnitValue:
        token = self._take()

        if token.kind == "symbol":
            if token.text == "(":
                result = self.expression()
                if not self._at_symbol(")"):
                    raise _Unresolvable("missing closing parenthesis")
                self._take()
                return result
            if token.text == "-":
                return -self.factor()
            raise _Unresolvable(f"unexpected symbol {token.text!r}")

        if token.kind == "number":
            return UnitValue(float(token.text))

        if token.text in self.scope:
            return self.scope[token.text]
        if self.strict:
            raise _Unresolvable(f"undefined variable {token.text!r}")
        return UnitValue(0.0)


def evaluate_with_units(
    formula: str,
    scope: Mapping[str, UnitValue],
    strict: bool = False,
) -> UnitValue | None:
    """
    Evaluate a formula over unit-tagged operands.

    Args:
        formula: Formula such as ``"A*B"`` or ``"(A+B)/C"``
        scope: Identifier -> ``UnitValue``
        strict: Treat identifiers missing from the scope as unresolvable
            instead of unitless zero

    Returns:
        The resulting ``UnitValue``, or None if the formula cannot be
        evaluated with units (syntax outside the grammar, incompatible
        units in ``+``/``-``, or a missing identifier in strict mode)
    """
    tokens = tokenize(formula)
    if not tokens:
        return None

    try:
        return _UnitEvaluator(tokens, scope, strict).parse()
    except UnitMismatchError as e:
        logger.debug("Unit-aware evaluation rejected", extra={"formula": formula, "reason": e.message})
        return None
    except _Unresolvable as e:
        logger.debug("Unit-aware evaluation not possible", extra={"formula": formula, "reason": str(e)})
        return None
