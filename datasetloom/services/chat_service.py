"""
Chat service for managing chats, messages and votes.

Provides:
- Create/read/delete chats and change their visibility
- Cursor-paginated chat listings
- Message insertion and chronological history
- Message votes (one per message, overwritten on re-vote)

Every public method is wrapped by ``track``, which logs failures with the
operation context and re-raises them unchanged.
"""

import json
import logging
import uuid
from typing import Any, List, Optional, Union

from ..exceptions import InvalidRequestError, NotFoundError
from ..models.core import Chat, ChatMessage, ChatPage, ChatVisibility, SortOrder, Vote
from ..storage.base import ChatStore
from ..storage.pagination import ChatPaginator
from ..utils.logging import log_event, track

VOTE_TYPES = {"up": True, "down": False}


class ChatService:
    """
    Service facade over the chat record store.

    Args:
        store: Record store
        paginator: Pagination engine; built over ``store`` if omitted
    """

    def __init__(self, store: ChatStore, paginator: Optional[ChatPaginator] = None):
        self.store = store
        self.paginator = paginator or ChatPaginator(store)

    @track(
        operation="chat_create",
        include_args=["user_id", "project_id", "visibility"],
        include_result=False,
    )
    async def create_chat(
        self,
        *,
        user_id: str,
        project_id: str,
        chat_id: Optional[str] = None,
        title: Optional[str] = None,
        visibility: ChatVisibility = ChatVisibility.PRIVATE,
    ) -> Chat:
        """
        Create a chat.

        Args:
            user_id: Owner
            project_id: Project the chat belongs to
            chat_id: Client-chosen id (generated if None)
            title: Optional title
            visibility: Initial visibility

        Returns:
            The stored chat
        """
        chat = await self.store.create_chat(
            chat_id=chat_id or str(uuid.uuid4()),
            user_id=user_id,
            project_id=project_id,
            title=title,
            visibility=visibility,
        )

        log_event("chat_created", {"chat_id": chat.id, "project_id": project_id})
        return chat

    @track(
        operation="chat_get",
        include_args=["chat_id", "project_id"],
        frequency="high_frequency",
    )
    async def get_chat(
        self,
        *,
        chat_id: str,
        project_id: Optional[str] = None,
        viewer_id: Optional[str] = None,
        require_owner: bool = False,
    ) -> Chat:
        """
        Get a chat by id.

        Args:
            chat_id: Chat id
            project_id: When given, a chat of another project is reported
                as not found
            viewer_id: When given, another user's private chat is reported
                as not found
            require_owner: Also hide public chats not owned by viewer_id

        Raises:
            NotFoundError: No such chat visible to the caller
        """
        chat = await self.store.find_chat(chat_id)

        if chat is None or not _is_accessible(chat, project_id, viewer_id, require_owner):
            raise NotFoundError(
                f"Chat '{chat_id}' not found",
                context={"chat_id": chat_id, "project_id": project_id},
            )

        return chat

    @track(
        operation="chat_list",
        include_args=["project_id", "limit", "starting_after", "ending_before"],
        frequency="medium_frequency",
    )
    async def list_chats(
        self,
        *,
        owner_id: str,
        project_id: str,
        limit: int,
        starting_after: Optional[str] = None,
        ending_before: Optional[str] = None,
    ) -> ChatPage:
        """List the chats ``owner_id`` can see in ``project_id``, newest first."""
        return await self.paginator.list_chats(
            owner_id,
            project_id,
            limit,
            starting_after=starting_after,
            ending_before=ending_before,
        )

    @track(
        operation="chat_visibility_update",
        include_args=["chat_id", "visibility"],
        include_result=False,
    )
    async def update_visibility(
        self, *, chat_id: str, visibility: ChatVisibility
    ) -> Chat:
        """
        Change who can see a chat.

        Raises:
            NotFoundError: No such chat
        """
        chat = await self.store.update_visibility(chat_id, visibility)

        if chat is None:
            raise NotFoundError(
                f"Chat '{chat_id}' not found", context={"chat_id": chat_id}
            )

        log_event(
            "chat_visibility_updated",
            {"chat_id": chat_id, "visibility": chat.visibility.value},
        )
        return chat

    @track(operation="chat_delete", include_args=["chat_id"])
    async def delete_chat(self, *, chat_id: str) -> None:
        """
        Permanently delete a chat with its messages and votes.

        Raises:
            NotFoundError: No such chat
        """
        if not await self.store.delete_chat(chat_id):
            raise NotFoundError(
                f"Chat '{chat_id}' not found", context={"chat_id": chat_id}
            )

    @track(
        operation="message_insert",
        include_args=["chat_id", "role"],
        include_result=False,
    )
    async def insert_message(
        self,
        *,
        chat_id: str,
        role: str,
        parts: Union[str, List[Any]],
        message_id: Optional[str] = None,
    ) -> ChatMessage:
        """
        Append a message to a chat.

        Args:
            chat_id: Parent chat
            role: Author role
            parts: Content segments, as a list or already-serialized JSON
            message_id: Client-chosen id (generated if None)

        Returns:
            The stored message
        """
        if not role or not role.strip():
            raise InvalidRequestError(
                "Message role cannot be empty", context={"chat_id": chat_id}
            )

        serialized = parts if isinstance(parts, str) else json.dumps(parts)

        return await self.store.insert_message(
            message_id=message_id or str(uuid.uuid4()),
            chat_id=chat_id,
            role=role,
            parts=serialized,
        )

    @track(
        operation="messages_get",
        include_args=["chat_id"],
        frequency="high_frequency",
    )
    async def get_messages(self, *, chat_id: str) -> List[ChatMessage]:
        """Return a chat's messages in chronological order."""
        return await self.store.list_messages(chat_id, order=SortOrder.ASC)

    @track(operation="votes_get", include_args=["chat_id"], frequency="high_frequency")
    async def get_votes(self, *, chat_id: str) -> List[Vote]:
        """Return all votes recorded for a chat."""
        return await self.store.list_votes(chat_id)

    @track(
        operation="message_vote",
        include_args=["chat_id", "message_id", "vote_type"],
        include_result=False,
    )
    async def vote_message(
        self, *, chat_id: str, message_id: str, vote_type: str
    ) -> Vote:
        """
        Record an up or down vote for a message.

        A second vote for the same message replaces the first.

        Raises:
            InvalidRequestError: vote_type is not "up" or "down"
        """
        if vote_type not in VOTE_TYPES:
            raise InvalidRequestError(
                f"Invalid vote type: {vote_type}. Must be 'up' or 'down'",
                context={"vote_type": vote_type},
            )

        vote = await self.store.upsert_vote(chat_id, message_id, VOTE_TYPES[vote_type])

        log_event(
            "vote_recorded",
            {"message_id": message_id, "is_upvote": vote.is_upvote},
            level=logging.DEBUG,
        )
        return vote


def _is_accessible(
    chat: Chat,
    project_id: Optional[str],
    viewer_id: Optional[str],
    require_owner: bool,
) -> bool:
    if project_id is not None and chat.project_id != project_id:
        return False
    if viewer_id is None or chat.user_id == viewer_id:
        return True
    return not require_owner and chat.visibility == ChatVisibility.PUBLIC
