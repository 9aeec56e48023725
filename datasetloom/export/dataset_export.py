"""
Export of a chat's history as a ShareGPT training-dataset archive.

The archive holds two entries:
- ``chat_<chat_id>_dataset.json``: {"conversations": [{"from", "value"}, ...]}
- ``dataset_info.json``: the manifest training tools use to load the dataset
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..models.core import SortOrder
from ..storage.base import ChatStore
from ..utils.logging import log_event, operation_context, track
from .archive import ArchiveBuilder
from .formatter import DEFAULT_ROLE_MAPPING, RoleMapping, format_message

DATASET_NAME = "DatasetLoom"
DATASET_FORMATTING = "sharegpt"
MANIFEST_FILENAME = "dataset_info.json"

FilenameStrategy = Callable[[str, str, Optional[str]], str]


def build_export_filename(
    project_id: str, chat_id: str, unique_token: Optional[str] = None
) -> str:
    """
    Default archive name: ``DatasetLoom-<project>-<chat>[-<token>].zip``.

    Without a token the name is deterministic, so two concurrent exports of
    the same chat write to the same path; pass a token to keep them apart.
    """
    stem = f"{DATASET_NAME}-{project_id}-{chat_id}"
    if unique_token:
        stem = f"{stem}-{unique_token}"
    return f"{stem}.zip"


def dataset_entry_name(chat_id: str) -> str:
    return f"chat_{chat_id}_dataset.json"


def build_manifest(dataset_filename: str) -> Dict[str, Any]:
    """Build the dataset_info.json manifest for a dataset file."""
    return {
        DATASET_NAME: {
            "file_name": dataset_filename,
            "formatting": DATASET_FORMATTING,
            "columns": {"messages": "conversations"},
        }
    }


@dataclass
class ExportResult:
    """Location of a finished export archive."""

    file_path: Path
    filename: str
    turns: int


class DatasetExporter:
    """
    Builds dataset archives from stored chat messages.

    Args:
        store: Record store the messages are read from
        export_dir: Directory archives are written to
        role_mapping: How message roles become ShareGPT speakers
        filename_strategy: Pure function (project_id, chat_id, token) -> name
        compression_level: zlib level for the archive
    """

    def __init__(
        self,
        store: ChatStore,
        export_dir: Path,
        role_mapping: RoleMapping = DEFAULT_ROLE_MAPPING,
        filename_strategy: FilenameStrategy = build_export_filename,
        compression_level: int = 9,
    ):
        self.store = store
        self.export_dir = Path(export_dir)
        self.role_mapping = role_mapping
        self.filename_strategy = filename_strategy
        self.compression_level = compression_level

    @track(
        operation="dataset_export",
        include_args=["project_id", "chat_id"],
        include_result=False,
    )
    async def export_chat_dataset(
        self,
        *,
        project_id: str,
        chat_id: str,
        unique_token: Optional[str] = None,
    ) -> ExportResult:
        """
        Export one chat as a dataset archive.

        Messages are read oldest-first and every one must format; a single
        malformed message aborts the export. Any failure after the archive
        is created removes it and re-raises the original error.

        Returns:
            ExportResult with the archive path and filename

        Raises:
            MalformedContentError: A message has no decodable text part
            StoreError: Messages could not be read
            ArchiveError: The archive could not be written
        """
        filename = self.filename_strategy(project_id, chat_id, unique_token)
        file_path = self.export_dir / filename
        dataset_filename = dataset_entry_name(chat_id)

        with operation_context(project_id=project_id, chat_id=chat_id):
            async with ArchiveBuilder(file_path, self.compression_level) as archive:
                conversations = await self._format_conversations(chat_id)

                await archive.add_json(dataset_filename, {"conversations": conversations})
                await archive.add_json(MANIFEST_FILENAME, build_manifest(dataset_filename))
                await archive.finalize()

            log_event(
                "dataset_export_completed",
                {"filename": filename, "turns": len(conversations)},
            )

        return ExportResult(file_path=file_path, filename=filename, turns=len(conversations))

    async def _format_conversations(self, chat_id: str) -> List[Dict[str, str]]:
        messages = await self.store.list_messages(chat_id, order=SortOrder.ASC)

        return [
            format_message(message, self.role_mapping).to_dict()
            for message in messages
            if not self.role_mapping.is_excluded(message.role)
        ]
