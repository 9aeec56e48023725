"""
Database utility functions for common operations.

Provides reusable helpers for:
- Query building
- Result mapping
- Driver error translation
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List

import asyncpg

from ...exceptions import ConflictError, NotFoundError, StoreError
from ...models.core import ChatVisibility, SortOrder
from ..base import ChatQuery


def record_to_dict(record: asyncpg.Record) -> Dict[str, Any]:
    """
    Convert asyncpg Record to dictionary.

    Args:
        record: Database record

    Returns:
        Dictionary with column names as keys
    """
    return dict(record)


def records_to_list(records: List[asyncpg.Record]) -> List[Dict[str, Any]]:
    """Convert a list of asyncpg Records to a list of dictionaries."""
    return [record_to_dict(record) for record in records]


def build_update_query(
    table: str,
    updates: Dict[str, Any],
    where_clause: str,
    returning: str = "*",
) -> tuple[str, List[Any]]:
    """
    Build UPDATE query with parameterized values.

    Args:
        table: Table name
        updates: Dictionary of column: value pairs
        where_clause: WHERE clause; its placeholders must start after the
            update values (e.g. "id = $2" for a single update)
        returning: RETURNING clause (default: "*")

    Returns:
        Tuple of (query, values)

    Example:
        query, values = build_update_query(
            "chats", {"visibility": "public"}, "id = $2"
        )
    """
    if not updates:
        raise ValueError("No updates provided")

    set_clauses = []
    values = []

    for param_num, (column, value) in enumerate(updates.items(), start=1):
        set_clauses.append(f"{column} = ${param_num}")
        values.append(value)

    query = f"""
        UPDATE {table}
        SET {', '.join(set_clauses)}
        WHERE {where_clause}
        RETURNING {returning}
    """

    return query, values


def build_insert_query(
    table: str,
    data: Dict[str, Any],
    returning: str = "*",
) -> tuple[str, List[Any]]:
    """
    Build INSERT query with parameterized values.

    Args:
        table: Table name
        data: Dictionary of column: value pairs
        returning: RETURNING clause (default: "*")

    Returns:
        Tuple of (query, values)

    Example:
        query, values = build_insert_query(
            "chats",
            {"id": "c1", "user_id": "u1", "project_id": "p1"}
        )
    """
    if not data:
        raise ValueError("No data provided")

    columns = list(data.keys())
    values = list(data.values())
    placeholders = [f"${i+1}" for i in range(len(values))]

    query = f"""
        INSERT INTO {table} ({', '.join(columns)})
        VALUES ({', '.join(placeholders)})
        RETURNING {returning}
    """

    return query, values


def build_chat_scan_query(query: ChatQuery, limit: int) -> tuple[str, List[Any]]:
    """
    Build the range scan behind chat pagination.

    The visibility predicate is always present: the chat must belong to the
    project and be either owned by the caller or public. Bounds on
    created_at are exclusive.

    Args:
        query: Scan filter
        limit: Maximum rows to return

    Returns:
        Tuple of (query, values)
    """
    values: List[Any] = [query.project_id, query.owner_id, ChatVisibility.PUBLIC.value]
    conditions = ["project_id = $1", "(user_id = $2 OR visibility = $3)"]

    if query.created_after is not None:
        values.append(query.created_after)
        conditions.append(f"created_at > ${len(values)}")

    if query.created_before is not None:
        values.append(query.created_before)
        conditions.append(f"created_at < ${len(values)}")

    direction = "DESC" if query.order == SortOrder.DESC else "ASC"
    values.append(limit)

    sql = f"""
        SELECT * FROM chats
        WHERE {' AND '.join(conditions)}
        ORDER BY created_at {direction}, id {direction}
        LIMIT ${len(values)}
    """

    return sql, values


@asynccontextmanager
async def store_operation(operation: str, **context: Any) -> AsyncIterator[None]:
    """
    Translate driver failures raised inside the block into StoreError.

    A foreign key violation means the parent chat or message is missing and
    becomes NotFoundError; a unique violation becomes ConflictError. The
    original exception is chained and nothing is retried.

    Example:
        async with store_operation("chat_find", chat_id=chat_id):
            record = await conn.fetchrow(...)
    """
    try:
        yield
    except asyncpg.UniqueViolationError as e:
        raise ConflictError(
            f"Record already exists for '{operation}'",
            context={"operation": operation, **context},
        ) from e
    except asyncpg.ForeignKeyViolationError as e:
        raise NotFoundError(
            f"Referenced record not found for '{operation}'",
            context={"operation": operation, **context},
        ) from e
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
        raise StoreError(
            f"Store operation '{operation}' failed: {e}",
            context={"operation": operation, "cause": type(e).__name__, **context},
        ) from e
