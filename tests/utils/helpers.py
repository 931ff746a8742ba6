"""
Test helper functions for reading and writing session rows directly

These helpers bypass the store so tests can check what was actually
persisted, whatever field-name convention the Database is configured with.
"""

from typing import Any, Dict, Optional

from sqlalchemy import delete, select

from sql_session_store.core.schemas.session import SessionRecord
from sql_session_store.core.utils.identifiers import build_column_list, camel_to_snake
from sql_session_store.core.utils.session_store import SessionStore

TEST_TABLE = "session"
TTL_SECONDS = 120


def map_raw_session_row(row: Dict[str, Any]) -> SessionRecord:
    """Parse a raw session row in either naming convention into a SessionRecord"""
    if "expiresAt" in row:
        row = {camel_to_snake(key): value for key, value in row.items()}
    if "expires_at" in row:
        return SessionRecord.model_validate(row)
    raise AssertionError(f"Unexpected session row shape: {sorted(row)}")


async def find_session_by_sid(store: SessionStore, sid: str) -> Optional[SessionRecord]:
    """Find a session row by sid, or None if it does not exist"""
    # bind the column list to the table so result types are processed
    columns = [store.table.c[column.name] for column in build_column_list(SessionRecord)]
    query = select(*columns).where(store.table.c.sid == sid)
    async with store.database.connect() as connection:
        row = await store.database.maybe_one(connection, query)

    if row is None:
        return None
    return map_raw_session_row(row)


async def delete_session_by_sid(store: SessionStore, sid: str) -> bool:
    """Delete a session row; True if a row was deleted"""
    async with store.database.connect() as connection:
        deleted = await store.database.execute(
            connection, delete(store.table).where(store.table.c.sid == sid)
        )
    return deleted == 1


async def insert_session_row(store: SessionStore, **values: Any) -> None:
    """Insert a raw session row without going through the upsert"""
    async with store.database.connect() as connection:
        await store.database.execute(connection, store.table.insert().values(**values))
