"""
Pydantic models for DatasetLoom.
"""

from .core import (
    Chat,
    ChatMessage,
    ChatPage,
    ChatVisibility,
    ShareGPTTurn,
    SortOrder,
    Vote,
)

__all__ = [
    "Chat",
    "ChatMessage",
    "ChatPage",
    "ChatVisibility",
    "ShareGPTTurn",
    "SortOrder",
    "Vote",
]
