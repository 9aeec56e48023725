from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from datasetloom.exceptions import ConflictError, NotFoundError
from datasetloom.models.core import Chat, ChatMessage, ChatVisibility, SortOrder, Vote
from datasetloom.storage.base import ChatQuery, ChatStore

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class InMemoryChatStore(ChatStore):
    """ChatStore double with the same filtering and ordering as PostgresChatStore."""

    def __init__(self):
        self.chats: Dict[str, Chat] = {}
        self.messages: Dict[str, ChatMessage] = {}
        self.votes: Dict[Tuple[str, str], Vote] = {}
        self.scan_calls: List[Tuple[ChatQuery, int]] = []
        self._tick = 0

    def _next_timestamp(self) -> datetime:
        self._tick += 1
        return BASE_TIME + timedelta(seconds=self._tick)

    def seed_chat(
        self,
        chat_id: str,
        user_id: str = "u1",
        project_id: str = "p1",
        visibility: ChatVisibility = ChatVisibility.PRIVATE,
        created_at: Optional[datetime] = None,
        title: Optional[str] = None,
    ) -> Chat:
        chat = Chat(
            id=chat_id,
            user_id=user_id,
            project_id=project_id,
            title=title,
            visibility=visibility,
            created_at=created_at or self._next_timestamp(),
        )
        self.chats[chat_id] = chat
        return chat

    def seed_message(
        self,
        message_id: str,
        chat_id: str,
        role: str,
        parts: str,
        created_at: Optional[datetime] = None,
    ) -> ChatMessage:
        message = ChatMessage(
            id=message_id,
            chat_id=chat_id,
            role=role,
            parts=parts,
            created_at=created_at or self._next_timestamp(),
        )
        self.messages[message_id] = message
        return message

    async def find_chat(self, chat_id: str) -> Optional[Chat]:
        return self.chats.get(chat_id)

    async def list_chats(self, query: ChatQuery, limit: int) -> List[Chat]:
        self.scan_calls.append((query, limit))

        matches = [
            chat
            for chat in self.chats.values()
            if chat.project_id == query.project_id
            and (
                chat.user_id == query.owner_id
                or chat.visibility == ChatVisibility.PUBLIC
            )
            and (query.created_after is None or chat.created_at > query.created_after)
            and (query.created_before is None or chat.created_at < query.created_before)
        ]
        matches.sort(
            key=lambda chat: (chat.created_at, chat.id),
            reverse=query.order == SortOrder.DESC,
        )
        return matches[:limit]

    async def list_messages(
        self, chat_id: str, order: SortOrder = SortOrder.ASC
    ) -> List[ChatMessage]:
        messages = [m for m in self.messages.values() if m.chat_id == chat_id]
        messages.sort(
            key=lambda message: (message.created_at, message.id),
            reverse=order == SortOrder.DESC,
        )
        return messages

    async def upsert_vote(self, chat_id: str, message_id: str, is_upvote: bool) -> Vote:
        message = self.messages.get(message_id)
        if chat_id not in self.chats or message is None or message.chat_id != chat_id:
            raise NotFoundError(
                "Referenced record not found for 'vote_upsert'",
                context={"chat_id": chat_id, "message_id": message_id},
            )
        vote = Vote(chat_id=chat_id, message_id=message_id, is_upvote=is_upvote)
        self.votes[(chat_id, message_id)] = vote
        return vote

    async def list_votes(self, chat_id: str) -> List[Vote]:
        return [vote for (cid, _), vote in self.votes.items() if cid == chat_id]

    async def create_chat(
        self,
        chat_id: str,
        user_id: str,
        project_id: str,
        title: Optional[str] = None,
        visibility: ChatVisibility = ChatVisibility.PRIVATE,
    ) -> Chat:
        if chat_id in self.chats:
            raise ConflictError(
                "Record already exists for 'chat_create'", context={"chat_id": chat_id}
            )
        return self.seed_chat(chat_id, user_id, project_id, visibility, title=title)

    async def insert_message(
        self, message_id: str, chat_id: str, role: str, parts: str
    ) -> ChatMessage:
        if chat_id not in self.chats:
            raise NotFoundError(
                "Referenced record not found for 'message_insert'",
                context={"chat_id": chat_id},
            )
        return self.seed_message(message_id, chat_id, role, parts)

    async def update_visibility(
        self, chat_id: str, visibility: ChatVisibility
    ) -> Optional[Chat]:
        chat = self.chats.get(chat_id)
        if chat is None:
            return None
        updated = chat.model_copy(update={"visibility": ChatVisibility(visibility)})
        self.chats[chat_id] = updated
        return updated

    async def delete_chat(self, chat_id: str) -> bool:
        if self.chats.pop(chat_id, None) is None:
            return False
        for message_id in [m.id for m in self.messages.values() if m.chat_id == chat_id]:
            del self.messages[message_id]
        for key in [key for key in self.votes if key[0] == chat_id]:
            del self.votes[key]
        return True
