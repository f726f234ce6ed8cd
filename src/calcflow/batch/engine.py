"""Batch formula engine.

Evaluates one formula over every row of a dataset and appends the result as
a new column. The run is all-or-nothing: the first row that fails aborts the
whole operation.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from calcflow.batch.aggregates import AGGREGATE_PATTERN, compute_aggregate, detect_aggregates
from calcflow.batch.models import BatchResult, ColumnMetadata, ColumnType, Dataset, ScalarInput
from calcflow.core.exceptions import CalcFlowException, FormulaSyntaxError
from calcflow.core.logging import LoggerMixin
from calcflow.formula.evaluator import FormulaEvaluator
from calcflow.formula.functions import KNOWN_IDENTIFIERS, coerce_cell
from calcflow.formula.parser import get_parser
from calcflow.units.derivation import derive_unit_from_formula

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_]")
_STRING_LITERAL = re.compile(r"\"[^\"]*\"|'[^']*'")
_BRACKET_REFERENCE = re.compile(r"\[([^\]]+)\]")
_BARE_WORD = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\b")
_XLOOKUP_CALL = re.compile(r"XLOOKUP\s*\(([^,]+),\s*([^,]+),\s*([^,)]+)(?:,\s*([^)]+))?\)")

COLUMN_ARRAY_PREFIX = "__col_"
REFERENCE_PREFIX = "_c_"


def sanitize_var_name(name: str) -> str:
    """Turn a column or scalar name into a formula identifier (``CO2 (kg)`` -> ``CO2__kg_``)."""
    safe = _UNSAFE_CHARS.sub("_", name)
    if safe[:1].isdigit():
        safe = "_" + safe
    return safe


def reference_name(name: str) -> str:
    """Identifier for a ``[column]`` or ``[scalar]`` reference, never a keyword like ``true``."""
    return REFERENCE_PREFIX + sanitize_var_name(name)


def find_unknown_identifier(formula: str) -> str | None:
    """First bare identifier that is not a known function, keyword or constant."""
    stripped = _STRING_LITERAL.sub("", formula)
    stripped = AGGREGATE_PATTERN.sub("", stripped)
    stripped = _BRACKET_REFERENCE.sub("", stripped)
    for word in _BARE_WORD.findall(stripped):
        if word not in KNOWN_IDENTIFIERS:
            return word
    return None


@dataclass
class CompiledFormula:
    """Formula rewritten to plain identifiers, parsed once, with its constant bindings."""

    source: str
    expression: str
    ast: Any
    constants: dict[str, Any] = field(default_factory=dict)
    columns: dict[str, str] = field(default_factory=dict)  # column id -> identifier


class BatchFormulaEngine(LoggerMixin):
    """
    Row-by-row formula evaluation over a dataset.

    Compilation (aggregates, XLOOKUP column arrays, reference rewriting and
    parsing) happens once per ``execute``; the row phase is a pure map over
    the input rows.
    """

    def execute(
        self,
        dataset: Dataset,
        new_column: str,
        formula: str,
        column_units: Mapping[str, str] | None = None,
        scalar_inputs: Mapping[str, ScalarInput] | None = None,
        unit_override: str | None = None,
    ) -> BatchResult:
        """
        Evaluate ``formula`` for every row and append it as ``new_column``.

        Args:
            dataset: Input dataset (not modified)
            new_column: Name of the column to add
            formula: Formula with ``[Column]`` references
            column_units: Column id -> unit; defaults to the schema's units
            scalar_inputs: Scalar name -> value and unit
            unit_override: Unit for the new column instead of the derived one

        Returns:
            Success with the new dataset and unit, or the first failure
        """
        scalar_inputs = scalar_inputs or {}
        if column_units is None:
            column_units = dataset.column_units()

        error = self.validate(formula, new_column)
        if error:
            self.logger.info("Batch formula rejected", extra={"formula": formula, "error": error})
            return BatchResult.fail(error)

        units = derive_unit_from_formula(
            formula,
            column_units,
            {name: scalar.unit for name, scalar in scalar_inputs.items()},
        )

        try:
            compiled = self.compile(formula, dataset, scalar_inputs)
        except FormulaSyntaxError as e:
            if not dataset.rows:
                compiled = None
            else:
                self.logger.info("Batch formula failed to parse", extra={"formula": formula})
                return BatchResult.fail(f"Error at row 1: {e.message}", row_index=1)

        rows = []
        results = []
        evaluator = FormulaEvaluator()
        for index, row in enumerate(dataset.rows, start=1):
            try:
                value = evaluator.evaluate(compiled.ast, self._row_scope(compiled, row))
            except CalcFlowException as e:
                return self._row_failure(formula, index, f"Error at row {index}: {e.message}")
            except (ArithmeticError, ValueError, TypeError) as e:
                return self._row_failure(formula, index, f"Error at row {index}: {e}")

            if not self._is_valid_result(value):
                return self._row_failure(
                    formula, index, f"Calculation resulted in invalid value at row {index}"
                )
            results.append(value)
            rows.append({**row, new_column: value})

        column_type = (
            ColumnType.STRING if any(isinstance(v, str) for v in results) else ColumnType.NUMBER
        )
        derived_unit = unit_override if unit_override else units.unit
        columns = [column for column in dataset.columns if column.id != new_column]
        columns.append(
            ColumnMetadata(id=new_column, name=new_column, type=column_type, unit=derived_unit)
        )

        self.logger.debug(
            "Batch formula evaluated",
            extra={"formula": formula, "rows": len(rows), "unit": derived_unit},
        )
        return BatchResult.ok(
            Dataset(rows=rows, columns=columns),
            new_column=new_column,
            derived_unit=derived_unit,
            unit_warning=units.warning,
        )

    @staticmethod
    def validate(formula: str, new_column: str) -> str | None:
        """Return the validation error message, or None if the formula may run."""
        if not formula or not formula.strip():
            return "Formula is empty"

        unknown = find_unknown_identifier(formula)
        if unknown:
            return (
                f'Invalid term "{unknown}" - column/scalar references must be in brackets '
                f"like [{unknown}]. If this is a function, check spelling."
            )

        if not new_column or not new_column.strip():
            return "New column name is required"
        return None

    def compile(
        self,
        formula: str,
        dataset: Dataset,
        scalar_inputs: Mapping[str, ScalarInput],
    ) -> CompiledFormula:
        """
        Rewrite references to identifiers and parse the result.

        Raises:
            FormulaSyntaxError: If the rewritten formula does not parse
        """
        expression = formula
        constants: dict[str, Any] = {}

        # Aggregates first so the [Column] inside $SUM_[Column] is left intact
        for aggregate in detect_aggregates(formula):
            name = sanitize_var_name(aggregate.syntax)
            value = compute_aggregate(aggregate.function, aggregate.column, dataset.rows)
            constants[name] = 0 if value is None else value
            expression = expression.replace(aggregate.syntax, name)

        columns = {column_id: reference_name(column_id) for column_id in dataset.column_ids()}
        for column_id, name in columns.items():
            expression = expression.replace(f"[{column_id}]", name)

        for scalar_name, scalar in scalar_inputs.items():
            name = reference_name(scalar_name)
            constants[name] = scalar.value
            expression = expression.replace(f"[{scalar_name}]", name)

        if "XLOOKUP" in formula:
            arrays = {
                COLUMN_ARRAY_PREFIX + name: [coerce_cell(row.get(column_id)) for row in dataset.rows]
                for column_id, name in columns.items()
            }
            constants.update(arrays)
            expression = _rewrite_xlookup(expression, arrays)

        self.logger.debug(
            "Batch formula compiled",
            extra={"formula": formula, "expression": expression},
        )
        ast = get_parser().parse(expression)
        return CompiledFormula(formula, expression, ast, constants, columns)

    @staticmethod
    def _row_scope(compiled: CompiledFormula, row: Mapping[str, Any]) -> dict[str, Any]:
        # Absent cells are NaN so the row fails; null cells read as 0
        scope = {
            name: _row_cell(row, column_id) for column_id, name in compiled.columns.items()
        }
        # Scalars win over columns of the same name
        scope.update(compiled.constants)
        return scope

    @staticmethod
    def _is_valid_result(value: Any) -> bool:
        if isinstance(value, float) and math.isnan(value):
            return False
        return not isinstance(value, (list, tuple, dict))

    def _row_failure(self, formula: str, row_index: int, message: str) -> BatchResult:
        self.logger.info(
            "Batch formula failed",
            extra={"formula": formula, "row_index": row_index, "error": message},
        )
        return BatchResult.fail(message, row_index=row_index)


def _rewrite_xlookup(expression: str, arrays: Mapping[str, list[Any]]) -> str:
    """Point the lookup and return arguments of each XLOOKUP call at column arrays."""

    def to_array(argument: str) -> str:
        return _BARE_WORD.sub(
            lambda m: COLUMN_ARRAY_PREFIX + m.group(1)
            if COLUMN_ARRAY_PREFIX + m.group(1) in arrays
            else m.group(1),
            argument.strip(),
        )

    def replace(match: re.Match) -> str:
        lookup_value, lookup_column, return_column, default = match.groups()
        args = [lookup_value.strip(), to_array(lookup_column), to_array(return_column)]
        if default:
            args.append(default.strip())
        return f"XLOOKUP({', '.join(args)})"

    return _XLOOKUP_CALL.sub(replace, expression)


def _row_cell(row: Mapping[str, Any], column_id: str) -> Any:
    if column_id not in row:
        return math.nan
    value = row[column_id]
    return 0 if value is None else coerce_cell(value)
