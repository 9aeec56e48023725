from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from datasetloom.exceptions import MalformedContentError, StoreError
from datasetloom.export import (
    DatasetExporter,
    RoleMapping,
    build_export_filename,
    build_manifest,
)

from tests.mocks import InMemoryChatStore
from tests.utils import read_archive, text_parts


@pytest.fixture
def greeting_chat(store: InMemoryChatStore) -> InMemoryChatStore:
    store.seed_chat("C1", project_id="P1")
    store.seed_message("m1", "C1", "user", text_parts("hi"))
    store.seed_message("m2", "C1", "assistant", text_parts("hello"))
    return store


class TestFilenames:
    def test_deterministic_name(self):
        assert build_export_filename("P1", "C1") == "DatasetLoom-P1-C1.zip"

    def test_token_makes_name_unique(self):
        assert build_export_filename("P1", "C1", "ab12") == "DatasetLoom-P1-C1-ab12.zip"

    def test_manifest(self):
        assert build_manifest("chat_C1_dataset.json") == {
            "DatasetLoom": {
                "file_name": "chat_C1_dataset.json",
                "formatting": "sharegpt",
                "columns": {"messages": "conversations"},
            }
        }


class TestExportChatDataset:
    @pytest.mark.asyncio
    async def test_exports_conversation_and_manifest(
        self, greeting_chat, exporter: DatasetExporter, export_dir: Path
    ):
        result = await exporter.export_chat_dataset(project_id="P1", chat_id="C1")

        assert result.filename == "DatasetLoom-P1-C1.zip"
        assert result.file_path == export_dir / "DatasetLoom-P1-C1.zip"
        assert result.turns == 2

        entries = read_archive(result.file_path)
        assert set(entries) == {"chat_C1_dataset.json", "dataset_info.json"}
        assert entries["chat_C1_dataset.json"] == {
            "conversations": [
                {"from": "human", "value": "hi"},
                {"from": "gpt", "value": "hello"},
            ]
        }
        assert entries["dataset_info.json"]["DatasetLoom"]["formatting"] == "sharegpt"
        assert (
            entries["dataset_info.json"]["DatasetLoom"]["file_name"]
            == "chat_C1_dataset.json"
        )

    @pytest.mark.asyncio
    async def test_every_message_in_chronological_order(self, store, exporter):
        store.seed_chat("C2", project_id="P1")
        for n in range(6):
            role = "user" if n % 2 == 0 else "assistant"
            store.seed_message(f"m{n}", "C2", role, text_parts(f"turn {n}"))

        result = await exporter.export_chat_dataset(project_id="P1", chat_id="C2")

        conversations = read_archive(result.file_path)["chat_C2_dataset.json"]["conversations"]
        assert [turn["value"] for turn in conversations] == [f"turn {n}" for n in range(6)]
        assert [turn["from"] for turn in conversations] == ["human", "gpt"] * 3

    @pytest.mark.asyncio
    async def test_chat_without_messages(self, store, exporter):
        store.seed_chat("C3", project_id="P1")

        result = await exporter.export_chat_dataset(project_id="P1", chat_id="C3")

        assert read_archive(result.file_path)["chat_C3_dataset.json"] == {
            "conversations": []
        }

    @pytest.mark.asyncio
    async def test_unique_token_in_filename(self, greeting_chat, exporter):
        result = await exporter.export_chat_dataset(
            project_id="P1", chat_id="C1", unique_token="0f3a"
        )

        assert result.filename == "DatasetLoom-P1-C1-0f3a.zip"
        assert result.file_path.exists()

    @pytest.mark.asyncio
    async def test_custom_filename_strategy(self, greeting_chat, export_dir):
        exporter = DatasetExporter(
            greeting_chat,
            export_dir=export_dir,
            filename_strategy=lambda project_id, chat_id, token: f"{chat_id}.zip",
        )

        result = await exporter.export_chat_dataset(project_id="P1", chat_id="C1")

        assert result.file_path == export_dir / "C1.zip"

    @pytest.mark.asyncio
    async def test_excluded_roles_are_dropped(self, greeting_chat, export_dir):
        greeting_chat.seed_message("m3", "C1", "system", text_parts("be brief"))
        exporter = DatasetExporter(
            greeting_chat,
            export_dir=export_dir,
            role_mapping=RoleMapping(excluded_roles=frozenset({"system"})),
        )

        result = await exporter.export_chat_dataset(project_id="P1", chat_id="C1")

        conversations = read_archive(result.file_path)["chat_C1_dataset.json"]["conversations"]
        assert [turn["value"] for turn in conversations] == ["hi", "hello"]

    @pytest.mark.asyncio
    async def test_system_role_exported_as_gpt_by_default(self, greeting_chat, exporter):
        greeting_chat.seed_message("m3", "C1", "system", text_parts("be brief"))

        result = await exporter.export_chat_dataset(project_id="P1", chat_id="C1")

        conversations = read_archive(result.file_path)["chat_C1_dataset.json"]["conversations"]
        assert conversations[-1] == {"from": "gpt", "value": "be brief"}


class TestExportFailures:
    @pytest.mark.asyncio
    async def test_malformed_message_leaves_no_file(
        self, greeting_chat, exporter, export_dir: Path
    ):
        greeting_chat.seed_message("m3", "C1", "user", "{broken")
        greeting_chat.seed_message("m4", "C1", "assistant", text_parts("after"))

        with pytest.raises(MalformedContentError) as exc_info:
            await exporter.export_chat_dataset(project_id="P1", chat_id="C1")

        assert exc_info.value.context["message_id"] == "m3"
        assert not (export_dir / "DatasetLoom-P1-C1.zip").exists()
        assert list(export_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_message_without_text_leaves_no_file(self, store, exporter, export_dir):
        store.seed_chat("C4", project_id="P1")
        store.seed_message("m1", "C4", "user", '[{"type": "image", "url": "x"}]')

        with pytest.raises(MalformedContentError):
            await exporter.export_chat_dataset(project_id="P1", chat_id="C4")

        assert list(export_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_store_failure_leaves_no_file(self, store, exporter, export_dir):
        store.list_messages = AsyncMock(side_effect=StoreError("connection lost"))

        with pytest.raises(StoreError, match="connection lost"):
            await exporter.export_chat_dataset(project_id="P1", chat_id="C1")

        assert list(export_dir.iterdir()) == []
