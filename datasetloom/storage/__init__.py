"""
Storage layer for DatasetLoom.
"""

from .base import ChatQuery, ChatStore
from .pagination import ChatPaginator

__all__ = ["ChatPaginator", "ChatQuery", "ChatStore"]
