"""Formula functions and value coercions.

Implements the built-in functions available in value-only formulas. Names
are case-sensitive: the conditional/lookup functions are upper case and the
math functions lower case, matching what users type in the formula bar.
"""

import math
from typing import Any, Callable

from calcflow.core.exceptions import FormulaEvaluationError

# Type alias for formula functions
FormulaFunction = Callable[..., Any]

# Registry of formula functions
FORMULA_FUNCTIONS: dict[str, FormulaFunction] = {}

_MISSING = object()


def register_function(name: str) -> Callable[[FormulaFunction], FormulaFunction]:
    """Decorator to register a formula function."""

    def decorator(func: FormulaFunction) -> FormulaFunction:
        FORMULA_FUNCTIONS[name] = func
        return func

    return decorator


# =============================================================================
# Coercions
# =============================================================================


def to_number(value: Any) -> float:
    """
    Coerce a formula value to a number for arithmetic.

    null counts as 0 and booleans as 0/1. Non-numeric strings raise.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip()) if value.strip() else 0.0
        except ValueError:
            raise FormulaEvaluationError(f'Cannot convert "{value}" to a number') from None
    raise FormulaEvaluationError(f"Cannot convert {type(value).__name__} to a number")


def to_text(value: Any) -> str:
    """Render a value the way string comparisons see it (``10.0`` -> ``"10"``)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def is_truthy(value: Any) -> bool:
    """Truthiness with NaN counted as false."""
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def values_equal(left: Any, right: Any) -> bool:
    """Value-or-string equality used by ==, SWITCH and XLOOKUP."""
    if left == right:
        return True
    if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
        return False
    return to_text(left) == to_text(right)


def coerce_cell(value: Any) -> Any:
    """
    Numeric-coerce a dataset cell when possible.

    ``"12.5"`` becomes ``12.5``; non-numeric strings, None and booleans are
    returned unchanged.
    """
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return value
        try:
            number = float(stripped)
        except ValueError:
            return value
        return number
    return value


def _numeric(name: str, *values: Any) -> list[float]:
    try:
        return [float(to_number(v)) for v in values]
    except FormulaEvaluationError as e:
        raise FormulaEvaluationError(f"{name}: {e.message}") from None


def _flatten(args: tuple[Any, ...]) -> list[Any]:
    values: list[Any] = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            values.extend(arg)
        else:
            values.append(arg)
    return values


# =============================================================================
# Conditional and Lookup Functions
# =============================================================================


@register_function("IF")
def func_if(condition: Any, if_true: Any, if_false: Any = None) -> Any:
    """Conditional: IF(condition, value_if_true, value_if_false)."""
    return if_true if is_truthy(condition) else if_false


@register_function("IFS")
def func_ifs(*args: Any) -> Any:
    """Multiple conditions: IFS(cond1, val1, cond2, val2, ..., [default])."""
    if not args:
        raise FormulaEvaluationError("IFS requires pairs of (condition, value)")
    for i in range(0, len(args) - 1, 2):
        if is_truthy(args[i]):
            return args[i + 1]
    if len(args) % 2 == 1:
        return args[-1]
    raise FormulaEvaluationError("IFS: No condition matched")


@register_function("SWITCH")
def func_switch(*args: Any) -> Any:
    """Switch: SWITCH(value, case1, result1, case2, result2, ..., [default])."""
    if len(args) < 3:
        raise FormulaEvaluationError("SWITCH requires at least (value, case, result)")
    test_value = args[0]
    for i in range(1, len(args) - 1, 2):
        if values_equal(test_value, args[i]):
            return args[i + 1]
    # Even total count leaves a trailing default
    if len(args) % 2 == 0:
        return args[-1]
    return None


@register_function("XLOOKUP")
def func_xlookup(
    lookup_value: Any,
    lookup_array: Any,
    return_array: Any,
    default: Any = _MISSING,
) -> Any:
    """XLOOKUP(value, lookup_column, return_column, [default]) over whole columns."""
    if not isinstance(lookup_array, (list, tuple)) or not isinstance(return_array, (list, tuple)):
        raise FormulaEvaluationError("XLOOKUP: lookup and return columns must be arrays")
    for index, candidate in enumerate(lookup_array):
        if values_equal(candidate, lookup_value):
            return return_array[index] if index < len(return_array) else None
    return None if default is _MISSING else default


# =============================================================================
# Math Functions
# =============================================================================


def _guarded(name: str, func: Callable[..., float], *values: Any) -> float:
    """Apply a math function, mapping domain errors to NaN and overflow to inf."""
    numbers = _numeric(name, *values)
    try:
        return func(*numbers)
    except ValueError:
        return math.nan
    except OverflowError:
        return math.inf


@register_function("sqrt")
def func_sqrt(value: Any) -> float:
    """Square root (NaN for negative input)."""
    return _guarded("sqrt", math.sqrt, value)


@register_function("cbrt")
def func_cbrt(value: Any) -> float:
    """Cube root, defined for negative input."""
    (x,) = _numeric("cbrt", value)
    return math.copysign(abs(x) ** (1.0 / 3.0), x)


@register_function("abs")
def func_abs(value: Any) -> float:
    """Absolute value."""
    return abs(_numeric("abs", value)[0])


@register_function("pow")
def func_pow(base: Any, exponent: Any) -> float:
    """Raise base to exponent."""
    return _guarded("pow", math.pow, base, exponent)


@register_function("round")
def func_round(value: Any, decimals: Any = 0) -> float:
    """Round half away from zero to the given number of decimals."""
    x, n = _numeric("round", value, decimals)
    if not math.isfinite(x):
        return x
    factor = 10 ** int(n)
    return math.copysign(math.floor(abs(x) * factor + 0.5) / factor, x)


@register_function("ceil")
def func_ceil(value: Any) -> float:
    """Round up to the nearest integer."""
    (x,) = _numeric("ceil", value)
    return float(math.ceil(x)) if math.isfinite(x) else x


@register_function("floor")
def func_floor(value: Any) -> float:
    """Round down to the nearest integer."""
    (x,) = _numeric("floor", value)
    return float(math.floor(x)) if math.isfinite(x) else x


@register_function("trunc")
def func_trunc(value: Any) -> float:
    """Truncate toward zero."""
    (x,) = _numeric("trunc", value)
    return float(math.trunc(x)) if math.isfinite(x) else x


@register_function("sign")
def func_sign(value: Any) -> float:
    """-1, 0 or 1 by sign."""
    (x,) = _numeric("sign", value)
    if math.isnan(x):
        return x
    return float((x > 0) - (x < 0))


@register_function("log")
def func_log(value: Any, base: Any = None) -> float:
    """Natural logarithm, or logarithm in the given base."""
    if base is None:
        return _guarded("log", math.log, value)
    return _guarded("log", math.log, value, base)


@register_function("log2")
def func_log2(value: Any) -> float:
    """Base-2 logarithm."""
    return _guarded("log2", math.log2, value)


@register_function("log10")
def func_log10(value: Any) -> float:
    """Base-10 logarithm."""
    return _guarded("log10", math.log10, value)


@register_function("exp")
def func_exp(value: Any) -> float:
    """e raised to value."""
    return _guarded("exp", math.exp, value)


@register_function("sin")
def func_sin(value: Any) -> float:
    return _guarded("sin", math.sin, value)


@register_function("cos")
def func_cos(value: Any) -> float:
    return _guarded("cos", math.cos, value)


@register_function("tan")
def func_tan(value: Any) -> float:
    return _guarded("tan", math.tan, value)


@register_function("asin")
def func_asin(value: Any) -> float:
    return _guarded("asin", math.asin, value)


@register_function("acos")
def func_acos(value: Any) -> float:
    return _guarded("acos", math.acos, value)


@register_function("atan")
def func_atan(value: Any) -> float:
    return _guarded("atan", math.atan, value)


@register_function("atan2")
def func_atan2(y: Any, x: Any) -> float:
    return _guarded("atan2", math.atan2, y, x)


@register_function("min")
def func_min(*args: Any) -> float:
    """Minimum of the arguments; array arguments are flattened."""
    values = _numeric("min", *_flatten(args))
    if not values:
        raise FormulaEvaluationError("min: no values")
    return min(values)


@register_function("max")
def func_max(*args: Any) -> float:
    """Maximum of the arguments; array arguments are flattened."""
    values = _numeric("max", *_flatten(args))
    if not values:
        raise FormulaEvaluationError("max: no values")
    return max(values)


@register_function("mod")
def func_mod(value: Any, divisor: Any) -> float:
    """Floored modulo; mod(x, 0) is x."""
    x, y = _numeric("mod", value, divisor)
    if y == 0:
        return x
    return x - y * math.floor(x / y)


# =============================================================================
# Known identifiers
# =============================================================================

LOGICAL_KEYWORDS = frozenset({"and", "or", "not", "xor"})

CONSTANTS: dict[str, Any] = {"pi": math.pi, "e": math.e}

LITERAL_KEYWORDS = frozenset({"true", "false", "null"})

# Bare identifiers a batch formula may contain without brackets
KNOWN_IDENTIFIERS = frozenset(FORMULA_FUNCTIONS) | LOGICAL_KEYWORDS | frozenset(CONSTANTS) | LITERAL_KEYWORDS
