"""
Custom exceptions for CalcFlow.

Engines raise these internally and convert them into result values at their
public boundary; the HTTP layer maps any that escape to status codes.
"""

from typing import Any


class CalcFlowException(Exception):
    """
    Base exception for all CalcFlow errors.

    All custom exceptions should inherit from this class.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# HTTP 400 - Bad Request Errors
# =============================================================================


class BadRequestError(CalcFlowException):
    """Invalid input supplied to an evaluation."""

    status_code = 400


class FormulaSyntaxError(BadRequestError):
    """Formula could not be tokenized, parsed or validated."""

    def __init__(self, message: str, formula: str | None = None) -> None:
        super().__init__(
            message=message,
            code="FORMULA_SYNTAX_ERROR",
            details={"formula": formula} if formula is not None else {},
        )


class UnitMismatchError(BadRequestError):
    """Incompatible units combined by addition or subtraction."""

    def __init__(self, left: str, right: str) -> None:
        super().__init__(
            message=f"Unit mismatch: {left} vs {right}",
            code="UNIT_MISMATCH",
            details={"left": left, "right": right},
        )


class DatasetValidationError(BadRequestError):
    """Dataset or operation preconditions not met."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="DATASET_VALIDATION_ERROR", details=details)


# =============================================================================
# HTTP 422 - Unprocessable Entity Errors
# =============================================================================


class UnprocessableEntityError(CalcFlowException):
    """Input is well-formed but cannot be evaluated."""

    status_code = 422


class FormulaEvaluationError(UnprocessableEntityError):
    """Formula raised or produced an invalid value while evaluating."""

    def __init__(self, message: str, row_index: int | None = None) -> None:
        details: dict[str, Any] = {}
        if row_index is not None:
            details["row_index"] = row_index
        super().__init__(message=message, code="FORMULA_EVALUATION_ERROR", details=details)
        self.row_index = row_index


class CircularDependencyError(UnprocessableEntityError):
    """Nodes that depend on each other and can never be scheduled."""

    def __init__(self, node_ids: set[str] | list[str]) -> None:
        ids = sorted(node_ids)
        super().__init__(
            message="Circular dependency detected",
            code="CIRCULAR_DEPENDENCY",
            details={"node_ids": ids},
        )
        self.node_ids = ids
