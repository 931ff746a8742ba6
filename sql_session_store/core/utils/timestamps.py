"""Conversions between epoch milliseconds and timezone-aware datetimes.

Drivers report timestamp columns in different ways depending on their type
parsers: aware datetimes (asyncpg), naive datetimes (SQLite), epoch numbers
or ISO-8601 strings. Naive values are read as UTC.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Union

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MILLISECOND = timedelta(milliseconds=1)

TimestampValue = Union[datetime, int, float, str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def from_epoch_ms(value: Union[int, float]) -> datetime:
    """Return the aware UTC datetime for epoch milliseconds"""
    return EPOCH + timedelta(milliseconds=value)


def to_epoch_ms(value: TimestampValue) -> int:
    """
    Return integer epoch milliseconds for a stored timestamp value.

    Integer arithmetic on timedeltas keeps millisecond values exact, so a
    value written with from_epoch_ms() reads back unchanged.

    Raises:
        TypeError: if the value is not a datetime, number or string
        ValueError: if a string is not ISO-8601
    """
    if isinstance(value, bool):
        raise TypeError("boolean is not a timestamp")
    if isinstance(value, datetime):
        return (ensure_utc(value) - EPOCH) // ONE_MILLISECOND
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        return to_epoch_ms(datetime.fromisoformat(value.replace("Z", "+00:00")))
    raise TypeError(f"unsupported timestamp type: {type(value).__name__}")
