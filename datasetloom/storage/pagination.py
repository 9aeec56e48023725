"""
Cursor-based pagination over the chats a user can see in a project.

A cursor is a chat id. It is resolved to that chat's created_at, which then
bounds a range scan. Pages are always newest-first, in both directions, and
are fetched with one extra row so has_more needs no COUNT query.

Resolving the cursor and scanning are two separate store calls, not one
transaction: a chat deleted between them still anchors the scan by the
timestamp read in the first call.
"""

from typing import Optional

from ..exceptions import InvalidRequestError, NotFoundError
from ..models.core import Chat, ChatPage, SortOrder
from ..utils.logging import log_event
from .base import ChatQuery, ChatStore


class ChatPaginator:
    """
    Pages through visible chats using overscan-and-trim.

    Args:
        store: Record store to resolve cursors and scan chats
        max_page_size: Largest accepted page size
    """

    def __init__(self, store: ChatStore, max_page_size: int = 100):
        self.store = store
        self.max_page_size = max_page_size

    async def list_chats(
        self,
        owner_id: str,
        project_id: str,
        limit: int,
        starting_after: Optional[str] = None,
        ending_before: Optional[str] = None,
    ) -> ChatPage:
        """
        Return one page of chats visible to ``owner_id`` in ``project_id``.

        Args:
            owner_id: Caller; their private chats are included
            project_id: Project scope; chats of other projects never appear
            limit: Page size, 1..max_page_size
            starting_after: Return chats strictly newer than this chat
            ending_before: Return chats strictly older than this chat

        Returns:
            ChatPage with at most ``limit`` chats, newest first

        Raises:
            InvalidRequestError: Bad limit, or both cursors supplied
            NotFoundError: The cursor chat does not exist
        """
        if limit < 1 or limit > self.max_page_size:
            raise InvalidRequestError(
                f"Limit must be between 1 and {self.max_page_size}",
                context={"limit": limit},
            )

        if starting_after and ending_before:
            raise InvalidRequestError(
                "Only one of starting_after or ending_before may be supplied",
                context={
                    "starting_after": starting_after,
                    "ending_before": ending_before,
                },
            )

        query = ChatQuery(owner_id=owner_id, project_id=project_id, order=SortOrder.DESC)
        direction = "first"

        if starting_after:
            anchor = await self._resolve_cursor(starting_after)
            query = ChatQuery(
                owner_id=owner_id,
                project_id=project_id,
                created_after=anchor.created_at,
                order=SortOrder.DESC,
            )
            direction = "after"
        elif ending_before:
            anchor = await self._resolve_cursor(ending_before)
            query = ChatQuery(
                owner_id=owner_id,
                project_id=project_id,
                created_before=anchor.created_at,
                order=SortOrder.DESC,
            )
            direction = "before"

        chats = await self.store.list_chats(query, limit + 1)

        has_more = len(chats) > limit
        page = ChatPage(chats=chats[:limit] if has_more else chats, has_more=has_more)

        log_event(
            "chats_paginated",
            {
                "project_id": project_id,
                "direction": direction,
                "returned": len(page.chats),
                "has_more": has_more,
            },
        )

        return page

    async def _resolve_cursor(self, chat_id: str) -> Chat:
        chat = await self.store.find_chat(chat_id)
        if chat is None:
            raise NotFoundError(
                f"Chat with id {chat_id} not found",
                context={"chat_id": chat_id},
            )
        return chat
