"""
Structured exception hierarchy for DatasetLoom.

Every error carries a category, an HTTP status hint and a context dict so the
API layer can turn it into a Failure envelope without inspecting messages.
"""

from typing import Any, Dict, Optional


class DatasetLoomError(Exception):
    """
    Base exception for all DatasetLoom errors.

    Attributes:
        message: Human-readable error message
        error_type: Categorization of error type
        status_code: HTTP status code hint for API responses
        context: Additional context about the error
    """

    error_type = "DatasetLoomError"
    status_code = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error": self.message,
            "error_type": self.error_type,
            "context": self.context,
        }


class NotFoundError(DatasetLoomError):
    """Raised when a chat or cursor anchor does not resolve."""

    error_type = "NotFoundError"
    status_code = 404


class InvalidRequestError(DatasetLoomError):
    """Raised when the caller supplies invalid arguments."""

    error_type = "ValidationError"
    status_code = 400


class MalformedContentError(DatasetLoomError):
    """Raised when a stored message cannot be turned into a dataset turn."""

    error_type = "MalformedContentError"
    status_code = 422


class StoreError(DatasetLoomError):
    """Raised when the record store fails."""

    error_type = "StorageError"
    status_code = 500


class ArchiveError(DatasetLoomError):
    """Raised when writing or finalizing an export archive fails."""

    error_type = "ArchiveError"
    status_code = 500


class ConflictError(DatasetLoomError):
    """Raised when a record with the same identity already exists."""

    error_type = "ConflictError"
    status_code = 409
