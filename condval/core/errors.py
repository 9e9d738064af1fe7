"""
Domain-specific exceptions for condval.

Every error carries an ErrorKind so hosts can branch on the category
without importing the concrete class. The HTTP layer maps kinds to
status codes via ERROR_STATUS_MAP.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Category of a condval failure."""

    PARSE = "PARSE"
    LOAD = "LOAD"
    COMPILE = "COMPILE"
    RUN = "RUN"
    NON_BOOLEAN_CONDITION = "NON_BOOLEAN_CONDITION"
    NO_MATCH = "NO_MATCH"
    GRID_TOO_LARGE = "GRID_TOO_LARGE"


class CondvalError(Exception):
    """Base exception for all condval errors."""

    kind: ErrorKind

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ParseError(CondvalError):
    """
    Raised when a raw configuration cannot be built into a rule tree.

    Examples:
    - Top-level value is not an array
    - Entry missing 'condition' or 'result'
    - Condition is not a string
    - Tree deeper or larger than the configured limits

    HTTP Status: 400 Bad Request
    """

    kind = ErrorKind.PARSE


class LoadError(CondvalError):
    """
    Raised when a configuration file cannot be read.

    HTTP Status: 500 Internal Server Error
    """

    kind = ErrorKind.LOAD


class EvaluationError(CondvalError):
    """Base class for failures raised while evaluating a rule tree."""


class CompileError(EvaluationError):
    """
    Raised when an expression source fails to compile.

    Fatal for conditions. Swallowed for string results, which fall back
    to the literal text.

    HTTP Status: 422 Unprocessable Entity
    """

    kind = ErrorKind.COMPILE


class RunError(EvaluationError):
    """
    Raised when a compiled expression fails at runtime.

    Examples:
    - Reference to a variable missing from the parameters
    - Type mismatch inside the expression
    - Division by zero

    HTTP Status: 422 Unprocessable Entity
    """

    kind = ErrorKind.RUN


class NonBooleanConditionError(EvaluationError):
    """
    Raised when a condition evaluates to something other than a boolean.

    HTTP Status: 422 Unprocessable Entity
    """

    kind = ErrorKind.NON_BOOLEAN_CONDITION


class NoMatchError(EvaluationError):
    """
    Raised when no rule in the tree matched.

    This is an expected outcome, not a defect: callers ask the tree
    whether a decision exists.

    HTTP Status: 404 Not Found
    """

    kind = ErrorKind.NO_MATCH


class GridTooLargeError(CondvalError):
    """
    Raised when a coverage sweep grid exceeds the configured size.

    HTTP Status: 400 Bad Request
    """

    kind = ErrorKind.GRID_TOO_LARGE


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    ErrorKind.PARSE: 400,
    ErrorKind.GRID_TOO_LARGE: 400,
    ErrorKind.NO_MATCH: 404,
    ErrorKind.COMPILE: 422,
    ErrorKind.RUN: 422,
    ErrorKind.NON_BOOLEAN_CONDITION: 422,
    ErrorKind.LOAD: 500,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    kind = getattr(error, "kind", None)
    return ERROR_STATUS_MAP.get(kind, 500)
