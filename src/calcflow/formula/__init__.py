"""Formula engine for CalcFlow.

Two evaluation modes share the user-facing operator syntax:

- Unit-aware mode (``evaluate_with_units``): +, -, *, / and parentheses over
  unit-tagged values, used by scalar process nodes
- Value-only mode (``FormulaParser`` + ``FormulaEvaluator``): the full
  expression language with comparisons, logical keywords, the ternary
  operator and functions (IF, IFS, SWITCH, XLOOKUP and math), used by batch
  table formulas and as the process-node fallback
"""

from calcflow.formula.evaluator import FormulaEvaluator, evaluate_value
from calcflow.formula.functions import FORMULA_FUNCTIONS, KNOWN_IDENTIFIERS, register_function
from calcflow.formula.parser import FormulaParser, get_parser
from calcflow.formula.units import evaluate_with_units, tokenize

__all__ = [
    "FormulaParser",
    "FormulaEvaluator",
    "FORMULA_FUNCTIONS",
    "KNOWN_IDENTIFIERS",
    "register_function",
    "evaluate_value",
    "evaluate_with_units",
    "get_parser",
    "tokenize",
]
