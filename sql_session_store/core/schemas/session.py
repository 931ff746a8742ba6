"""Session row schema definitions.

Rows read from the session table arrive with snake_case column names, or
with camelCase names when the database layer transforms field names. Both
shapes are accepted here and reconciled into a single SessionValue before
anything else sees them.
"""
import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sql_session_store.core.exceptions import InvalidSessionDataError, MalformedRowError
from sql_session_store.core.utils.timestamps import TimestampValue, to_epoch_ms

JsonObject = dict[str, Any]


class SessionRecord(BaseModel):
    """Schema for a full session table row"""

    id: int = Field(..., ge=0)
    sid: str
    data: Optional[JsonObject] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SnakeCaseSessionRow(BaseModel):
    """Session value as reported with snake_case column names"""

    data: Optional[JsonObject] = None
    expires_at: Optional[TimestampValue] = None

    model_config = ConfigDict(extra="ignore")


class CamelCaseSessionRow(BaseModel):
    """Session value as reported by a field-name transforming database layer"""

    data: Optional[JsonObject] = None
    expiresAt: Optional[TimestampValue] = None

    model_config = ConfigDict(extra="ignore")


UniversalSessionRow = Union[SnakeCaseSessionRow, CamelCaseSessionRow]


class SessionValue(BaseModel):
    """Canonical session value returned by the store"""

    data: Optional[JsonObject] = None
    expires_at: Optional[TimestampValue] = None

    @property
    def expires_at_ms(self) -> Optional[int]:
        if self.expires_at is None:
            return None
        return to_epoch_ms(self.expires_at)


def parse_universal_row(row: Mapping[str, Any]) -> UniversalSessionRow:
    """
    Parse a raw result row into whichever naming convention it uses.

    Raises:
        MalformedRowError: if the row has neither expiry field or fails validation
    """
    if "expiresAt" in row:
        model: type[BaseModel] = CamelCaseSessionRow
    elif "expires_at" in row:
        model = SnakeCaseSessionRow
    else:
        raise MalformedRowError(
            "Session row has neither 'expires_at' nor 'expiresAt'",
            details={"fields": sorted(row.keys())},
        )

    try:
        return model.model_validate(dict(row))
    except ValidationError as e:
        raise MalformedRowError(
            f"Session row failed validation: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False, include_input=False)},
        ) from e


def reconcile_session_row(row: Mapping[str, Any]) -> SessionValue:
    """Map a snake_case or camelCase session row to the canonical SessionValue"""
    parsed = parse_universal_row(row)
    if isinstance(parsed, CamelCaseSessionRow):
        return SessionValue(data=parsed.data, expires_at=parsed.expiresAt)
    return SessionValue(data=parsed.data, expires_at=parsed.expires_at)


def _has_non_string_keys(value: Any) -> bool:
    """Return True if any object in the payload, nested ones included, has a non-str key"""
    if isinstance(value, Mapping):
        return any(
            not isinstance(key, str) or _has_non_string_keys(item)
            for key, item in value.items()
        )
    if isinstance(value, (list, tuple)):
        return any(_has_non_string_keys(item) for item in value)
    return False


def validate_session_data(value: Any) -> JsonObject:
    """
    Return a JSON-normalized copy of a session payload.

    Raises:
        InvalidSessionDataError: if the payload is not a JSON-serializable object
    """
    if not isinstance(value, Mapping):
        raise InvalidSessionDataError(
            "Session data must be a JSON object",
            details={"type": type(value).__name__},
        )
    # json.dumps would silently stringify these keys
    if _has_non_string_keys(value):
        raise InvalidSessionDataError("Session data object keys must be strings")
    try:
        return json.loads(json.dumps(dict(value), allow_nan=False))
    except (TypeError, ValueError) as e:
        raise InvalidSessionDataError(f"Session data is not JSON-serializable: {e}") from e
