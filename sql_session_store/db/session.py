"""
Database connection management.

Provides the async SQLAlchemy engine factory and the Database wrapper used by
the session store: scoped connection acquisition plus small helpers for point
lookups and write statements.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.sql.expression import Executable

from sql_session_store.core.config import Settings, get_settings
from sql_session_store.core.exceptions import MultipleRowsError
from sql_session_store.core.utils.identifiers import snake_to_camel

logger = logging.getLogger(__name__)


def get_engine_args(settings: Settings) -> Dict[str, Any]:
    """Get database-specific engine arguments"""
    if settings.is_sqlite:
        # SQLite uses its own pool and does not accept sizing arguments
        return {"echo": settings.DB_ECHO_SQL}
    return {
        "echo": settings.DB_ECHO_SQL,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_pre_ping": True,  # Verify connections before using
    }


def create_async_engine_from_settings(settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Create the async SQLAlchemy engine for the configured DATABASE_URL.

    Raises:
        ArgumentError: If the database URL is invalid
    """
    settings = settings or get_settings()
    return create_async_engine(settings.DATABASE_URL, **get_engine_args(settings))


class Database:
    """
    Thin wrapper around an AsyncEngine.

    Every value is bound as a statement parameter and identifiers are quoted
    by SQLAlchemy when the statement compiles. When transform_field_names is
    set, result row keys are converted from snake_case to camelCase.
    """

    def __init__(self, engine: AsyncEngine, transform_field_names: bool = False):
        self.engine = engine
        self.transform_field_names = transform_field_names

    @property
    def dialect(self) -> Dialect:
        return self.engine.dialect

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def connect(self) -> AsyncGenerator[AsyncConnection, None]:
        """Acquire a connection inside a transaction; commits on success, rolls back on error"""
        async with self.engine.begin() as connection:
            yield connection

    def _to_dict(self, row: Any) -> Dict[str, Any]:
        mapping = dict(row._mapping)
        if self.transform_field_names:
            return {snake_to_camel(key): value for key, value in mapping.items()}
        return mapping

    async def maybe_one(
        self, connection: AsyncConnection, statement: Executable
    ) -> Optional[Dict[str, Any]]:
        """
        Execute a query expected to match at most one row.

        Raises:
            MultipleRowsError: if more than one row is returned
        """
        result = await connection.execute(statement)
        rows = result.fetchmany(2)
        if not rows:
            return None
        if len(rows) > 1:
            raise MultipleRowsError("Query returned more than one row")
        return self._to_dict(rows[0])

    async def many(self, connection: AsyncConnection, statement: Executable) -> list[Dict[str, Any]]:
        result = await connection.execute(statement)
        return [self._to_dict(row) for row in result.fetchall()]

    async def execute(self, connection: AsyncConnection, statement: Executable) -> int:
        """Execute a write statement and return the affected row count"""
        result = await connection.execute(statement)
        return result.rowcount

    async def dispose(self) -> None:
        await self.engine.dispose()


def create_database(settings: Optional[Settings] = None) -> Database:
    """Create a Database for the configured engine and field-name settings"""
    settings = settings or get_settings()
    return Database(
        create_async_engine_from_settings(settings),
        transform_field_names=settings.TRANSFORM_FIELD_NAMES,
    )
