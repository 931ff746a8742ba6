"""
Global test configuration and fixtures

Provides an in-memory SQLite database with the session table created, plus
Database and SessionStore fixtures for both result field-name conventions.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from sql_session_store.core.utils.session_store import SessionStore
from sql_session_store.db.init_db import init_database
from sql_session_store.db.session import Database
from tests.utils.helpers import TEST_TABLE, TTL_SECONDS


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def engine():
    """Create an in-memory SQLite engine with the session table"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_database(engine, TEST_TABLE)

    yield engine

    await engine.dispose()


@pytest.fixture
def database(engine):
    """Database reporting snake_case field names"""
    return Database(engine)


@pytest.fixture
def camel_database(engine):
    """Database reporting camelCase field names"""
    return Database(engine, transform_field_names=True)


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture(params=["snake_case", "camel_case"])
def store(request, engine):
    """Session store for each result field-name convention"""
    database = Database(engine, transform_field_names=request.param == "camel_case")
    return SessionStore(database, ttl_seconds=TTL_SECONDS, table_identifier=TEST_TABLE)


@pytest.fixture
def session_data():
    return {"foo": "bar"}


# ============================================================================
# Test Markers and Configuration
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Add markers based on file location"""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
