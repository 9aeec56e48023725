"""
Record store port for chats, messages and votes.

The pagination engine, the exporter and the chat service depend on this
interface only; PostgresChatStore is the production adapter.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..models.core import Chat, ChatMessage, ChatVisibility, SortOrder, Vote


@dataclass(frozen=True)
class ChatQuery:
    """
    Filter for a chat range scan.

    A chat matches when it belongs to ``project_id`` and is either owned by
    ``owner_id`` or public. The optional bounds are exclusive.
    """

    owner_id: str
    project_id: str
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    order: SortOrder = SortOrder.DESC


class ChatStore(ABC):
    """
    Abstract base class for chat persistence.

    Failures of the underlying store surface as StoreError.
    """

    @abstractmethod
    async def find_chat(self, chat_id: str) -> Optional[Chat]:
        """
        Point lookup of a chat.

        Returns:
            The chat, or None if no chat has this id
        """

    @abstractmethod
    async def list_chats(self, query: ChatQuery, limit: int) -> List[Chat]:
        """
        Range scan over the chats matching ``query``.

        Args:
            query: Visibility scope, optional bounds and order
            limit: Maximum rows to return

        Returns:
            Chats ordered by created_at in ``query.order``
        """

    @abstractmethod
    async def list_messages(
        self, chat_id: str, order: SortOrder = SortOrder.ASC
    ) -> List[ChatMessage]:
        """Return every message of a chat ordered by created_at."""

    @abstractmethod
    async def upsert_vote(
        self, chat_id: str, message_id: str, is_upvote: bool
    ) -> Vote:
        """Create the vote for (chat_id, message_id) or overwrite the existing one."""

    @abstractmethod
    async def list_votes(self, chat_id: str) -> List[Vote]:
        """Return all votes recorded for a chat."""

    @abstractmethod
    async def create_chat(
        self,
        chat_id: str,
        user_id: str,
        project_id: str,
        title: Optional[str] = None,
        visibility: ChatVisibility = ChatVisibility.PRIVATE,
    ) -> Chat:
        """Insert a chat and return the stored row."""

    @abstractmethod
    async def insert_message(
        self, message_id: str, chat_id: str, role: str, parts: str
    ) -> ChatMessage:
        """Insert a message and return the stored row."""

    @abstractmethod
    async def update_visibility(
        self, chat_id: str, visibility: ChatVisibility
    ) -> Optional[Chat]:
        """
        Change a chat's visibility.

        Returns:
            The updated chat, or None if no chat has this id
        """

    @abstractmethod
    async def delete_chat(self, chat_id: str) -> bool:
        """
        Delete a chat; messages and votes go with it.

        Returns:
            True if a chat was deleted, False if none had this id
        """
