from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from datasetloom.exceptions import ConflictError, NotFoundError, StoreError
from datasetloom.models.core import ChatVisibility, SortOrder
from datasetloom.storage.base import ChatQuery
from datasetloom.storage.database import SCHEMA_PATH, PostgresChatStore

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def chat_row(chat_id="c1", **overrides):
    row = {
        "id": chat_id,
        "user_id": "u1",
        "project_id": "p1",
        "title": None,
        "visibility": "private",
        "created_at": NOW,
    }
    row.update(overrides)
    return row


@pytest.fixture
def conn():
    conn = MagicMock()
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.execute = AsyncMock(return_value="OK")
    return conn


@pytest.fixture
def pg_store(conn) -> PostgresChatStore:
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.acquire.return_value.__aexit__.return_value = False
    return PostgresChatStore(pool)


class TestReads:
    @pytest.mark.asyncio
    async def test_find_chat(self, pg_store, conn):
        conn.fetchrow.return_value = chat_row(visibility="public")

        chat = await pg_store.find_chat("c1")

        assert chat.id == "c1"
        assert chat.visibility == ChatVisibility.PUBLIC
        sql, chat_id = conn.fetchrow.call_args.args
        assert "FROM chats WHERE id = $1" in sql
        assert chat_id == "c1"

    @pytest.mark.asyncio
    async def test_find_missing_chat_returns_none(self, pg_store, conn):
        assert await pg_store.find_chat("missing") is None

    @pytest.mark.asyncio
    async def test_list_chats_passes_scan_parameters(self, pg_store, conn):
        conn.fetch.return_value = [chat_row("c2"), chat_row("c1")]
        query = ChatQuery(owner_id="u1", project_id="p1", created_before=NOW)

        chats = await pg_store.list_chats(query, 3)

        assert [chat.id for chat in chats] == ["c2", "c1"]
        sql, *values = conn.fetch.call_args.args
        assert "created_at < $4" in sql
        assert values == ["p1", "u1", "public", NOW, 3]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("order,direction", [(SortOrder.ASC, "ASC"), (SortOrder.DESC, "DESC")])
    async def test_list_messages_order(self, pg_store, conn, order, direction):
        conn.fetch.return_value = [
            {"id": "m1", "chat_id": "c1", "role": "user", "parts": "[]", "created_at": NOW}
        ]

        messages = await pg_store.list_messages("c1", order=order)

        assert messages[0].id == "m1"
        sql = conn.fetch.call_args.args[0]
        assert f"ORDER BY created_at {direction}" in sql


class TestWrites:
    @pytest.mark.asyncio
    async def test_upsert_vote_uses_on_conflict_update(self, pg_store, conn):
        conn.fetchrow.return_value = {"chat_id": "c1", "message_id": "m1", "is_upvote": False}

        vote = await pg_store.upsert_vote("c1", "m1", False)

        assert vote.is_upvote is False
        sql, *values = conn.fetchrow.call_args.args
        assert "ON CONFLICT (chat_id, message_id)" in sql
        assert "DO UPDATE SET is_upvote = EXCLUDED.is_upvote" in sql
        assert values == ["c1", "m1", False]

    @pytest.mark.asyncio
    async def test_create_chat(self, pg_store, conn):
        conn.fetchrow.return_value = chat_row(title="Notes")

        chat = await pg_store.create_chat("c1", "u1", "p1", title="Notes")

        assert chat.title == "Notes"
        sql, *values = conn.fetchrow.call_args.args
        assert "INSERT INTO chats (id, user_id, project_id, visibility, title)" in sql
        assert values == ["c1", "u1", "p1", "private", "Notes"]

    @pytest.mark.asyncio
    async def test_update_visibility_returns_none_when_missing(self, pg_store, conn):
        result = await pg_store.update_visibility("missing", ChatVisibility.PUBLIC)

        assert result is None
        sql, *values = conn.fetchrow.call_args.args
        assert "SET visibility = $1" in sql
        assert "WHERE id = $2" in sql
        assert values == ["public", "missing"]

    @pytest.mark.asyncio
    async def test_delete_chat(self, pg_store, conn):
        conn.fetchrow.return_value = {"id": "c1"}
        assert await pg_store.delete_chat("c1") is True

        conn.fetchrow.return_value = None
        assert await pg_store.delete_chat("c1") is False

    @pytest.mark.asyncio
    async def test_apply_schema_executes_ddl(self, pg_store, conn):
        await pg_store.apply_schema(SCHEMA_PATH)

        ddl = conn.execute.call_args.args[0]
        assert "CREATE TABLE IF NOT EXISTS chat_message_votes" in ddl
        assert "PRIMARY KEY (chat_id, message_id)" in ddl
        assert "REFERENCES chat_messages (chat_id, id)" in ddl


class TestErrorTranslation:
    @pytest.mark.asyncio
    async def test_driver_error_becomes_store_error(self, pg_store, conn):
        conn.fetchrow.side_effect = asyncpg.PostgresError("boom")

        with pytest.raises(StoreError) as exc_info:
            await pg_store.find_chat("c1")

        assert exc_info.value.context["operation"] == "chat_find"
        assert exc_info.value.context["chat_id"] == "c1"
        assert isinstance(exc_info.value.__cause__, asyncpg.PostgresError)

    @pytest.mark.asyncio
    async def test_connection_error_becomes_store_error(self, pg_store, conn):
        conn.fetch.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(StoreError):
            await pg_store.list_votes("c1")

    @pytest.mark.asyncio
    async def test_foreign_key_violation_is_not_found(self, pg_store, conn):
        conn.fetchrow.side_effect = asyncpg.ForeignKeyViolationError("fk")

        with pytest.raises(NotFoundError):
            await pg_store.upsert_vote("c1", "missing", True)

    @pytest.mark.asyncio
    async def test_unique_violation_is_conflict(self, pg_store, conn):
        conn.fetchrow.side_effect = asyncpg.UniqueViolationError("dup")

        with pytest.raises(ConflictError):
            await pg_store.create_chat("c1", "u1", "p1")

    @pytest.mark.asyncio
    async def test_missing_schema_file(self, pg_store, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            await pg_store.apply_schema(tmp_path / "missing.sql")
