"""
Structured logging for DatasetLoom.

One decorator, track, instruments service operations; log_event emits
ad-hoc structured events. Both share a request-scoped correlation id.
"""

from .context import get_correlation_id, operation_context, set_correlation_id
from .smart_logger import log_operation_error, track
from .structured import StructuredLogger, log_event

__all__ = [
    # Primary API
    "track",
    "log_event",
    "get_correlation_id",
    "set_correlation_id",
    "operation_context",
    # Manual logging helpers
    "log_operation_error",
    # Advanced usage
    "StructuredLogger",
]
