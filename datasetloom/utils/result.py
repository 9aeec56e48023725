"""
Failure envelope for API error responses.

Service code raises DatasetLoomError subclasses; the HTTP boundary converts
them with failure_from_exception so every error answers with the same shape.

Example:
    >>> failure_from_exception(NotFoundError("Chat 'c1' not found")).to_dict()
    {'success': False, 'error': "Chat 'c1' not found", 'error_type': 'NotFoundError'}
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import DatasetLoomError


@dataclass
class Failure:
    """
    Represents a failed operation with an error.

    Attributes:
        error: The error message
        error_type: Type/category of error (e.g., "ValidationError")
        context: Additional context about the error
        recoverable: Whether the operation can be retried
        status_code: HTTP status code hint for API responses
    """

    error: str
    error_type: str = "UnknownError"
    context: Optional[Dict[str, Any]] = None
    recoverable: bool = False
    status_code: int = 500

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with success=False and error fields
        """
        result = {
            "success": False,
            "error": str(self.error),
            "error_type": self.error_type,
        }
        if self.context:
            result["context"] = self.context
        if self.recoverable:
            result["recoverable"] = True
        return result

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Failure({self.error_type}: {self.error})"


class ErrorType:
    """Common error types with HTTP status codes."""

    VALIDATION_ERROR = ("ValidationError", 400, True)
    NOT_FOUND_ERROR = ("NotFoundError", 404, False)
    MALFORMED_CONTENT_ERROR = ("MalformedContentError", 422, False)
    CONFLICT_ERROR = ("ConflictError", 409, False)
    INTERNAL_ERROR = ("InternalError", 500, False)
    STORAGE_ERROR = ("StorageError", 500, True)
    ARCHIVE_ERROR = ("ArchiveError", 500, True)

    @classmethod
    def lookup(cls, error_type: str) -> Optional[tuple]:
        """Find the (name, status, recoverable) triple for an error type name."""
        for value in vars(cls).values():
            if isinstance(value, tuple) and value[0] == error_type:
                return value
        return None


def internal_error(message: str, context: Optional[Dict[str, Any]] = None) -> Failure:
    """Create an internal error result."""
    error_type, status_code, recoverable = ErrorType.INTERNAL_ERROR
    return Failure(
        error=message,
        error_type=error_type,
        context=context,
        recoverable=recoverable,
        status_code=status_code,
    )


def failure_from_exception(error: Exception) -> Failure:
    """
    Convert a raised exception into a Failure envelope.

    DatasetLoomError subclasses keep their category, status code and context.
    Anything else becomes an opaque internal error.

    Args:
        error: The exception that escaped a service call

    Returns:
        Failure describing the error
    """
    if isinstance(error, DatasetLoomError):
        error_kind = ErrorType.lookup(error.error_type)
        recoverable = error_kind[2] if error_kind else False
        return Failure(
            error=error.message,
            error_type=error.error_type,
            context=error.context or None,
            recoverable=recoverable,
            status_code=error.status_code,
        )

    return internal_error(
        "Internal server error", context={"error_type": type(error).__name__}
    )
