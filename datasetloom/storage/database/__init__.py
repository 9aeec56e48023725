"""
PostgreSQL-backed chat storage.

The schema keeps chats, their messages and message votes in three tables
with cascading deletes; the listing index on (project_id, created_at DESC)
serves the paginated range scans.
"""

from pathlib import Path

from .postgres_store import PostgresChatStore
from .utils import (
    build_chat_scan_query,
    build_insert_query,
    build_update_query,
    record_to_dict,
    records_to_list,
    store_operation,
)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

__all__ = [
    "PostgresChatStore",
    "SCHEMA_PATH",
    "build_chat_scan_query",
    "build_insert_query",
    "build_update_query",
    "record_to_dict",
    "records_to_list",
    "store_operation",
]
