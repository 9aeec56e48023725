"""
PostgreSQL implementation of the chat record store.

Each method acquires one pooled connection for one statement. Driver errors
are translated to StoreError by store_operation; nothing is retried.
"""

import logging
from pathlib import Path
from typing import List, Optional

import asyncpg

from ...models.core import Chat, ChatMessage, ChatVisibility, SortOrder, Vote
from ...utils.logging import log_event
from ..base import ChatQuery, ChatStore
from .utils import (
    build_chat_scan_query,
    build_insert_query,
    build_update_query,
    record_to_dict,
    records_to_list,
    store_operation,
)


class PostgresChatStore(ChatStore):
    """
    Chat store backed by an asyncpg connection pool.

    Tables are described in schema.sql; apply_schema() creates them.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        """
        Initialize the store.

        Args:
            db_pool: PostgreSQL connection pool
        """
        self.db_pool = db_pool

    async def apply_schema(self, schema_path: Path) -> None:
        """Execute the DDL in ``schema_path`` (idempotent)."""
        ddl = schema_path.read_text(encoding="utf-8")

        async with store_operation("schema_apply", schema=schema_path.name):
            async with self.db_pool.acquire() as conn:
                await conn.execute(ddl)

        log_event("schema_applied", {"schema": schema_path.name})

    async def find_chat(self, chat_id: str) -> Optional[Chat]:
        async with store_operation("chat_find", chat_id=chat_id):
            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow("SELECT * FROM chats WHERE id = $1", chat_id)

        return Chat.model_validate(record_to_dict(record)) if record else None

    async def list_chats(self, query: ChatQuery, limit: int) -> List[Chat]:
        sql, values = build_chat_scan_query(query, limit)

        async with store_operation(
            "chat_scan", project_id=query.project_id, limit=limit
        ):
            async with self.db_pool.acquire() as conn:
                records = await conn.fetch(sql, *values)

        return [Chat.model_validate(row) for row in records_to_list(records)]

    async def list_messages(
        self, chat_id: str, order: SortOrder = SortOrder.ASC
    ) -> List[ChatMessage]:
        direction = "ASC" if order == SortOrder.ASC else "DESC"
        sql = f"""
            SELECT * FROM chat_messages
            WHERE chat_id = $1
            ORDER BY created_at {direction}, id {direction}
        """

        async with store_operation("message_scan", chat_id=chat_id):
            async with self.db_pool.acquire() as conn:
                records = await conn.fetch(sql, chat_id)

        return [ChatMessage.model_validate(row) for row in records_to_list(records)]

    async def upsert_vote(
        self, chat_id: str, message_id: str, is_upvote: bool
    ) -> Vote:
        sql = """
            INSERT INTO chat_message_votes (chat_id, message_id, is_upvote)
            VALUES ($1, $2, $3)
            ON CONFLICT (chat_id, message_id)
            DO UPDATE SET is_upvote = EXCLUDED.is_upvote
            RETURNING *
        """

        async with store_operation("vote_upsert", chat_id=chat_id, message_id=message_id):
            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(sql, chat_id, message_id, is_upvote)

        return Vote.model_validate(record_to_dict(record))

    async def list_votes(self, chat_id: str) -> List[Vote]:
        async with store_operation("vote_scan", chat_id=chat_id):
            async with self.db_pool.acquire() as conn:
                records = await conn.fetch(
                    "SELECT * FROM chat_message_votes WHERE chat_id = $1", chat_id
                )

        return [Vote.model_validate(row) for row in records_to_list(records)]

    async def create_chat(
        self,
        chat_id: str,
        user_id: str,
        project_id: str,
        title: Optional[str] = None,
        visibility: ChatVisibility = ChatVisibility.PRIVATE,
    ) -> Chat:
        data = {
            "id": chat_id,
            "user_id": user_id,
            "project_id": project_id,
            "visibility": ChatVisibility(visibility).value,
        }
        if title:
            data["title"] = title

        query, values = build_insert_query("chats", data)

        async with store_operation("chat_create", chat_id=chat_id):
            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(query, *values)

        return Chat.model_validate(record_to_dict(record))

    async def insert_message(
        self, message_id: str, chat_id: str, role: str, parts: str
    ) -> ChatMessage:
        query, values = build_insert_query(
            "chat_messages",
            {"id": message_id, "chat_id": chat_id, "role": role, "parts": parts},
        )

        async with store_operation("message_insert", chat_id=chat_id, message_id=message_id):
            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(query, *values)

        return ChatMessage.model_validate(record_to_dict(record))

    async def update_visibility(
        self, chat_id: str, visibility: ChatVisibility
    ) -> Optional[Chat]:
        query, values = build_update_query(
            "chats", {"visibility": ChatVisibility(visibility).value}, "id = $2"
        )
        values.append(chat_id)

        async with store_operation("chat_visibility_update", chat_id=chat_id):
            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(query, *values)

        return Chat.model_validate(record_to_dict(record)) if record else None

    async def delete_chat(self, chat_id: str) -> bool:
        async with store_operation("chat_delete", chat_id=chat_id):
            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(
                    "DELETE FROM chats WHERE id = $1 RETURNING id", chat_id
                )

        if record:
            log_event("chat_deleted", {"chat_id": chat_id}, level=logging.WARNING)
        return record is not None
