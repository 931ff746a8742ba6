"""
Unit tests for the error hierarchy and timestamp conversions
"""

from datetime import datetime, timedelta, timezone

import pytest

from sql_session_store.core.exceptions import (
    InvalidSessionDataError,
    InvalidTimestampError,
    MalformedRowError,
    MultipleRowsError,
    SessionStoreError,
    UnsupportedInputError,
)
from sql_session_store.core.utils.timestamps import (
    EPOCH,
    ensure_utc,
    from_epoch_ms,
    to_epoch_ms,
)

pytestmark = pytest.mark.unit


class TestExceptions:
    """Test the session store error hierarchy"""

    @pytest.mark.parametrize(
        "error_class",
        [
            UnsupportedInputError,
            InvalidTimestampError,
            InvalidSessionDataError,
            MalformedRowError,
            MultipleRowsError,
        ],
    )
    def test_all_errors_share_base(self, error_class):
        assert issubclass(error_class, SessionStoreError)

    def test_builtin_bases(self):
        assert issubclass(UnsupportedInputError, TypeError)
        assert issubclass(InvalidTimestampError, TypeError)
        assert issubclass(InvalidSessionDataError, ValueError)

    def test_to_dict(self):
        error = MalformedRowError("bad row", details={"fields": ["data"]})

        assert str(error) == "bad row"
        assert error.to_dict() == {
            "error": "MalformedRowError",
            "message": "bad row",
            "details": {"fields": ["data"]},
        }

    def test_to_dict_without_details(self):
        assert MultipleRowsError("two rows").to_dict() == {
            "error": "MultipleRowsError",
            "message": "two rows",
        }


class TestTimestamps:
    """Test epoch millisecond conversions"""

    def test_from_epoch_ms(self):
        assert from_epoch_ms(0) == EPOCH
        assert from_epoch_ms(1500) == EPOCH + timedelta(seconds=1, milliseconds=500)

    @pytest.mark.parametrize("ms", [0, 1, 999, 1700000000123, 1893553445678, 253402300799999])
    def test_millisecond_values_are_exact(self, ms):
        assert to_epoch_ms(from_epoch_ms(ms)) == ms

    def test_naive_datetime_is_utc(self):
        naive = datetime(2030, 1, 1, 0, 0, 0)

        assert ensure_utc(naive).tzinfo is timezone.utc
        assert to_epoch_ms(naive) == to_epoch_ms(naive.replace(tzinfo=timezone.utc))

    def test_other_timezone_converted(self):
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2030, 1, 1, 2, 0, 0, tzinfo=plus_two)

        assert ensure_utc(value) == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_numbers_and_strings(self):
        assert to_epoch_ms(1893553445678) == 1893553445678
        assert to_epoch_ms(1893553445678.9) == 1893553445678
        assert to_epoch_ms("1970-01-01T00:00:01Z") == 1000

    @pytest.mark.parametrize("value", [True, None, [1]])
    def test_unsupported_types(self, value):
        with pytest.raises(TypeError):
            to_epoch_ms(value)

    def test_invalid_string(self):
        with pytest.raises(ValueError):
            to_epoch_ms("not a date")
