"""Server-side session storage on a relational table.

Sessions are stored in the `session` table (or any table with the same
layout), keyed by the session id supplied by the session framework. Expiry
instants are computed from the store's TTL unless the caller passes an
explicit expiry in epoch milliseconds.

Every operation runs exactly one statement on one connection. Expired rows
are not filtered by get(); use delete_expired() for housekeeping.
"""
from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any, AsyncGenerator, Optional, Union

from sqlalchemy import Table, delete, func, select, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.sql.expression import Executable

from sql_session_store.core.config import Settings, get_settings
from sql_session_store.core.exceptions import InvalidTimestampError, UnsupportedInputError
from sql_session_store.core.schemas.session import (
    JsonObject,
    reconcile_session_row,
    validate_session_data,
)
from sql_session_store.core.utils.identifiers import (
    IdentifierInput,
    TableIdentifier,
    normalize_identifier,
)
from sql_session_store.core.utils.timestamps import from_epoch_ms, utc_now
from sql_session_store.db.session import Database, create_database

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SECONDS = 86400  # one day

DEFAULT_SESSION_TABLE_SCHEMA = "public"
DEFAULT_SESSION_TABLE_NAME = "session"

DEFAULT_SESSION_TABLE_IDENTIFIER = normalize_identifier(
    [DEFAULT_SESSION_TABLE_SCHEMA, DEFAULT_SESSION_TABLE_NAME]
)

SUPPORTED_DIALECTS = frozenset({"postgresql", "sqlite", "mysql", "mariadb"})

ExpiryInput = Optional[Union[int, float]]


class SessionStore:
    """
    Relational session store for a session framework.

    get/set/destroy/touch follow the usual session store protocol: get
    returns a (data, expiry_ms) pair or None, the other operations return
    nothing. Destroying or touching a missing session is a no-op.
    """

    def __init__(
        self,
        database: Database,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        table_identifier: IdentifierInput = DEFAULT_SESSION_TABLE_IDENTIFIER,
    ):
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
            raise UnsupportedInputError(
                "ttl_seconds must be a positive integer",
                details={"ttl_seconds": repr(ttl_seconds)},
            )
        if database.dialect_name not in SUPPORTED_DIALECTS:
            raise UnsupportedInputError(
                f"Unsupported database dialect: {database.dialect_name}",
                details={"supported": sorted(SUPPORTED_DIALECTS)},
            )

        self.database = database
        self.ttl_seconds = ttl_seconds
        self.table_identifier: TableIdentifier = normalize_identifier(table_identifier)
        self.table: Table = self.table_identifier.to_table()

    def __repr__(self) -> str:
        return (
            f"<SessionStore(table={str(self.table_identifier)!r}, "
            f"ttl_seconds={self.ttl_seconds})>"
        )

    def compute_expiry(self, expires_at_ms: ExpiryInput = None) -> datetime:
        """
        Return the expiry instant for the given epoch milliseconds, otherwise
        now plus the store's TTL if no timestamp is given.

        Raises:
            InvalidTimestampError: if a timestamp is given but is not a finite number
        """
        if expires_at_ms and (
            isinstance(expires_at_ms, bool)
            or not isinstance(expires_at_ms, (int, float))
            or not math.isfinite(expires_at_ms)
        ):
            logger.error(f"Invalid session expiry timestamp: {expires_at_ms!r}")
            raise InvalidTimestampError(
                "session store received invalid timestamp",
                details={"type": type(expires_at_ms).__name__},
            )

        if expires_at_ms:
            try:
                return from_epoch_ms(expires_at_ms)
            except OverflowError as e:
                raise InvalidTimestampError(
                    "session store received out of range timestamp"
                ) from e
        return utc_now() + timedelta(seconds=self.ttl_seconds)

    @asynccontextmanager
    async def _connection(self, operation: str) -> AsyncGenerator[AsyncConnection, None]:
        try:
            async with self.database.connect() as connection:
                yield connection
        except Exception as e:
            logger.error(f"Session {operation} failed on {self.table_identifier}: {e}")
            raise

    def _upsert_statement(self, sid: str, data: JsonObject, expires_at: datetime) -> Executable:
        """Build a single atomic insert-or-update statement keyed on sid"""
        values = {"sid": sid, "data": data, "expires_at": expires_at}
        dialect_name = self.database.dialect_name

        if dialect_name in ("mysql", "mariadb"):
            mysql_stmt = mysql.insert(self.table).values(**values)
            return mysql_stmt.on_duplicate_key_update(
                data=mysql_stmt.inserted.data,
                expires_at=mysql_stmt.inserted.expires_at,
            )

        insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
        stmt = insert(self.table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[self.table.c.sid],
            set_={"data": stmt.excluded.data, "expires_at": stmt.excluded.expires_at},
        )

    async def get(self, sid: str) -> Optional[tuple[JsonObject, Optional[int]]]:
        """
        Get a session as a (data, expiry_ms) tuple given its session id.

        Returns None if there is no session or its data is null.

        Raises:
            MultipleRowsError: if more than one row matches the session id
            MalformedRowError: if the row has neither expiry field convention
        """
        query = select(self.table.c.data, self.table.c.expires_at).where(
            self.table.c.sid == sid
        )

        async with self._connection("get") as connection:
            row = await self.database.maybe_one(connection, query)

        if row is None or row.get("data") is None:
            return None

        value = reconcile_session_row(row)
        return value.data, value.expires_at_ms

    async def set(self, sid: str, data: JsonObject, expires_at_ms: ExpiryInput = None) -> None:
        """
        Upsert a session given its session id and a JSON object payload.

        Raises:
            InvalidTimestampError: if expires_at_ms is given but not numeric
            InvalidSessionDataError: if data is not a JSON-serializable object
        """
        expires_at = self.compute_expiry(expires_at_ms)
        json_data = validate_session_data(data)

        async with self._connection("set") as connection:
            await self.database.execute(
                connection, self._upsert_statement(sid, json_data, expires_at)
            )
        logger.debug(f"Stored session in {self.table_identifier}")

    async def destroy(self, sid: str) -> None:
        """Destroy the session with the given session id."""
        async with self._connection("destroy") as connection:
            deleted = await self.database.execute(
                connection, delete(self.table).where(self.table.c.sid == sid)
            )
        logger.debug(f"Destroyed {deleted} session(s) in {self.table_identifier}")

    async def touch(self, sid: str, expires_at_ms: ExpiryInput = None) -> None:
        """
        Reset the expiry of a session without changing its data.

        Touching a session that does not exist is not an error.
        """
        expires_at = self.compute_expiry(expires_at_ms)
        query = (
            update(self.table)
            .where(self.table.c.sid == sid)
            .values(expires_at=expires_at)
        )

        async with self._connection("touch") as connection:
            matched = await self.database.execute(connection, query)
        if not matched:
            logger.debug(f"Touch matched no session in {self.table_identifier}")

    async def all(self) -> Optional[dict[str, Any]]:
        """Return all sessions (expired included) keyed by session id, or None if empty"""
        query = select(self.table.c.sid, self.table.c.data)

        async with self._connection("all") as connection:
            rows = await self.database.many(connection, query)

        if not rows:
            return None
        return {row["sid"]: row["data"] for row in rows}

    async def length(self) -> int:
        """Return the number of stored sessions, expired included"""
        query = select(func.count(self.table.c.id).label("count"))

        async with self._connection("length") as connection:
            row = await self.database.maybe_one(connection, query)

        return int(row["count"]) if row else 0

    async def clear(self) -> None:
        """Delete all sessions from the store"""
        async with self._connection("clear") as connection:
            deleted = await self.database.execute(connection, delete(self.table))
        logger.info(f"Cleared {deleted} session(s) from {self.table_identifier}")

    async def delete_expired(self, days_expired: Optional[Union[int, float]] = None) -> int:
        """
        Delete sessions whose expiry has passed.

        With days_expired, only sessions that expired more than that many
        days ago are deleted. Returns the number of deleted sessions.

        Raises:
            UnsupportedInputError: if days_expired is negative
        """
        cutoff = utc_now()
        if (
            days_expired
            and not isinstance(days_expired, bool)
            and isinstance(days_expired, (int, float))
            and math.isfinite(days_expired)
        ):
            if days_expired < 0:
                # a negative window would move the cutoff past live sessions
                raise UnsupportedInputError(
                    "days_expired must not be negative",
                    details={"days_expired": days_expired},
                )
            cutoff -= timedelta(days=days_expired)

        query = delete(self.table).where(self.table.c.expires_at < cutoff)

        async with self._connection("delete_expired") as connection:
            deleted = await self.database.execute(connection, query)
        logger.info(f"Deleted {deleted} expired session(s) from {self.table_identifier}")
        return deleted


def create_session_store(
    settings: Optional[Settings] = None, database: Optional[Database] = None
) -> SessionStore:
    """Build a SessionStore from application settings"""
    settings = settings or get_settings()
    return SessionStore(
        database or create_database(settings),
        ttl_seconds=settings.SESSION_TTL_SECONDS,
        table_identifier=settings.session_table_identifier,
    )
