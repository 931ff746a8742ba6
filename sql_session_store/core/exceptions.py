"""
Exception classes for the SQL session store.

All errors raised by the store derive from SessionStoreError so callers can
catch the whole family at once. Database driver and SQLAlchemy errors are not
wrapped; they propagate to the caller unchanged.
"""

from typing import Any, Optional


class SessionStoreError(Exception):
    """Base exception for all session store errors"""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly description of the error"""
        result: dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class UnsupportedInputError(SessionStoreError, TypeError):
    """Raised when an identifier or constructor argument has an unrecognized shape"""


class InvalidTimestampError(SessionStoreError, TypeError):
    """Raised when an explicit expiry timestamp is present but not numeric"""


class InvalidSessionDataError(SessionStoreError, ValueError):
    """Raised when a session payload is not a JSON-serializable object"""


class MalformedRowError(SessionStoreError):
    """
    Raised when a row read from the session table exposes neither the
    snake_case nor the camelCase expiry field.

    This indicates a mismatch between the store's expectations and the
    actual table or driver configuration.
    """


class MultipleRowsError(SessionStoreError):
    """Raised by the database layer when a point lookup matches more than one row"""
