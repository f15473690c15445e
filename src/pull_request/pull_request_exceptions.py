"""Exception classes for pull request access."""

from typing import Any


class PullRequestError(Exception):
    """Raised when pull requests or their diffs cannot be fetched."""

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details
