"""
Test utilities and helpers for DatasetLoom testing.
"""

from .assertions import (
    assert_error_response,
    assert_successful_response,
    read_archive,
)
from .helpers import text_parts

__all__ = [
    "assert_error_response",
    "assert_successful_response",
    "read_archive",
    "text_parts",
]
