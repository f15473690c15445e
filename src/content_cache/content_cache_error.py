"""Exception for cache I/O failures."""

from typing import Any


class CacheIOError(Exception):
    """
    Raised inside the cache when an entry cannot be read or written.

    It never escapes ContentCache: reads downgrade it to a miss and writes to a no-op.
    """

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details
