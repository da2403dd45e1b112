"""
Unit Tests for Time Utilities

Run with:
    pytest tests/unit/test_time.py -v
"""

import time
from datetime import datetime, timezone

import pytest

from crypto_api.core.utils.time import current_utc_timestamp, to_utc_datetime


class TestToUtcDatetime:
    """Seconds / milliseconds detection"""

    def test_milliseconds(self):
        assert to_utc_datetime(1704110400000) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_seconds(self):
        assert to_utc_datetime(1704110400) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_numeric_string(self):
        assert to_utc_datetime("1704110400000").year == 2024

    def test_result_is_timezone_aware(self):
        assert to_utc_datetime(0).tzinfo == timezone.utc

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            to_utc_datetime(-1)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError, match="Invalid timestamp"):
            to_utc_datetime("yesterday")


class TestCurrentUtcTimestamp:
    """Nonce generation"""

    def test_seconds_and_milliseconds(self, monkeypatch):
        monkeypatch.setattr(time, "time", lambda: 1704110400.5)
        assert current_utc_timestamp() == 1704110400
        assert current_utc_timestamp(milliseconds=True) == 1704110400500
