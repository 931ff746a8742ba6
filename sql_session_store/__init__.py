"""Relational session store with TTL-based expiry."""

from sql_session_store.core.exceptions import (
    InvalidSessionDataError,
    InvalidTimestampError,
    MalformedRowError,
    MultipleRowsError,
    SessionStoreError,
    UnsupportedInputError,
)
from sql_session_store.core.utils.identifiers import (
    TableIdentifier,
    build_column_list,
    camel_to_snake,
    normalize_identifier,
    normalize_identifier_camel_to_snake,
)
from sql_session_store.core.utils.logging_config import init_logging, setup_logging
from sql_session_store.core.utils.session_store import (
    DEFAULT_SESSION_TABLE_IDENTIFIER,
    DEFAULT_SESSION_TTL_SECONDS,
    SessionStore,
    create_session_store,
)
from sql_session_store.db.session import Database

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_SESSION_TABLE_IDENTIFIER",
    "DEFAULT_SESSION_TTL_SECONDS",
    "Database",
    "InvalidSessionDataError",
    "InvalidTimestampError",
    "MalformedRowError",
    "MultipleRowsError",
    "SessionStore",
    "SessionStoreError",
    "TableIdentifier",
    "UnsupportedInputError",
    "build_column_list",
    "camel_to_snake",
    "create_session_store",
    "init_logging",
    "normalize_identifier",
    "normalize_identifier_camel_to_snake",
    "setup_logging",
]
