"""Database models"""

from sql_session_store.db.models.session_store import SessionData

__all__ = [
    "SessionData",
]
