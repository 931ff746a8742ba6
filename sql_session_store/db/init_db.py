"""Create the session table for development and test databases.

The session store never creates tables itself; production schemas are
expected to be managed by migrations.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.schema import CreateSchema

from sql_session_store.core.config import Settings, get_settings
from sql_session_store.core.utils.identifiers import IdentifierInput, normalize_identifier
from sql_session_store.core.utils.logging_config import init_logging
from sql_session_store.db.session import create_async_engine_from_settings

logger = logging.getLogger("sql_session_store.database")


async def init_database(engine: AsyncEngine, table_identifier: IdentifierInput = "session") -> None:
    """Create the session table (and its schema, if qualified) when missing"""
    identifier = normalize_identifier(table_identifier)
    table = identifier.to_table(MetaData())

    try:
        logger.info(f"Creating session table {identifier}...")
        async with engine.begin() as conn:
            if identifier.schema and engine.dialect.name == "postgresql":
                await conn.execute(CreateSchema(identifier.schema, if_not_exists=True))
            await conn.run_sync(table.create, checkfirst=True)

        logger.info("Created session table", extra={"table": str(identifier)})

    except Exception as e:
        logger.error(f"Error initializing database: {e}", extra={
            "error_type": type(e).__name__,
            "database_url": "[REDACTED]"  # Don't log connection strings
        })
        raise


async def main(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    init_logging(settings)

    engine = create_async_engine_from_settings(settings)
    try:
        await init_database(engine, settings.session_table_identifier)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
