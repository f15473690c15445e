"""Exception classes for intent analysis."""

from typing import Any


class IntentError(Exception):
    """Base exception for intent analysis, refinement and hunk splitting."""

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details


class EmptyInputError(IntentError):
    """Raised when there are no hunks to work on."""


class EngineError(IntentError):
    """Raised when the classification engine is unavailable, fails or times out."""


class SchemaError(IntentError):
    """Raised when engine output cannot be decoded into the expected shape."""


class IntentValidationError(IntentError):
    """
    Raised when decoded engine output breaks the coverage-and-uniqueness invariant or
    uses a category or risk value outside its enumeration.
    """
