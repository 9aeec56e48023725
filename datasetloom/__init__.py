"""
DatasetLoom - chat persistence and training-dataset export.

Stores multi-tenant chat conversations, pages through the chats a user can
see with cursor-based pagination, and exports a chat's history as a
ShareGPT-formatted dataset archive.
"""

__version__ = "0.1.0"

from .exceptions import (
    ArchiveError,
    ConflictError,
    DatasetLoomError,
    InvalidRequestError,
    MalformedContentError,
    NotFoundError,
    StoreError,
)
from .models.core import Chat, ChatMessage, ChatPage, ChatVisibility, Vote

__all__ = [
    "ArchiveError",
    "ConflictError",
    "Chat",
    "ChatMessage",
    "ChatPage",
    "ChatVisibility",
    "DatasetLoomError",
    "InvalidRequestError",
    "MalformedContentError",
    "NotFoundError",
    "StoreError",
    "Vote",
]
