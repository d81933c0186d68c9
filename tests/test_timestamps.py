"""Unit tests for timestamp utilities."""

from datetime import datetime, timedelta, timezone

from jobhunter.utils.timestamps import (
    ensure_utc,
    from_storage,
    start_of_month,
    to_storage,
    utc_now,
)

TORONTO_WINTER = timezone(timedelta(hours=-5))


class TestUtcNow:
    """Tests for utc_now function."""

    def test_utc_now_returns_utc_datetime(self):
        """Test that utc_now returns a timezone-aware datetime in UTC."""
        now = utc_now()

        assert now.tzinfo == timezone.utc

    def test_utc_now_is_recent(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_ensure_utc_with_none(self):
        assert ensure_utc(None) is None

    def test_ensure_utc_with_naive_datetime(self):
        """Test that naive datetime is treated as UTC."""
        result = ensure_utc(datetime(2026, 10, 17, 12, 0, 0))

        assert result == datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)

    def test_ensure_utc_with_other_timezone(self):
        """Test that a non-UTC datetime is converted, not relabelled."""
        result = ensure_utc(datetime(2026, 1, 15, 7, 0, 0, tzinfo=TORONTO_WINTER))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12


class TestStorageFormat:
    """Tests for to_storage and from_storage."""

    def test_to_storage_fixed_width(self):
        value = to_storage(datetime(2026, 10, 17, 9, 5, 3, tzinfo=timezone.utc))

        assert value == "2026-10-17T09:05:03.000000Z"

    def test_to_storage_converts_to_utc(self):
        value = to_storage(datetime(2026, 1, 15, 7, 0, 0, tzinfo=TORONTO_WINTER))

        assert value == "2026-01-15T12:00:00.000000Z"

    def test_storage_strings_sort_chronologically(self):
        earlier = to_storage(datetime(2026, 9, 30, 23, 59, 59, 999999, tzinfo=timezone.utc))
        later = to_storage(datetime(2026, 10, 1, 0, 0, 0, tzinfo=timezone.utc))

        assert earlier < later

    def test_from_storage(self):
        dt = datetime(2026, 10, 17, 9, 5, 3, 123456, tzinfo=timezone.utc)

        assert from_storage(to_storage(dt)) == dt

    def test_from_storage_without_fraction(self):
        assert from_storage("2026-10-17T09:05:03Z") == datetime(2026, 10, 17, 9, 5, 3, tzinfo=timezone.utc)

    def test_none_passthrough(self):
        assert to_storage(None) is None
        assert from_storage(None) is None
        assert from_storage("") is None


class TestStartOfMonth:
    """Tests for start_of_month function."""

    def test_start_of_month(self):
        result = start_of_month(datetime(2026, 10, 17, 15, 42, 7, tzinfo=timezone.utc))

        assert result == datetime(2026, 10, 1, tzinfo=timezone.utc)

    def test_start_of_month_uses_utc(self):
        # 21:00 on Oct 31 in UTC-5 is already November in UTC
        result = start_of_month(datetime(2026, 10, 31, 21, 0, 0, tzinfo=TORONTO_WINTER))

        assert result == datetime(2026, 11, 1, tzinfo=timezone.utc)

    def test_start_of_month_defaults_to_now(self):
        result = start_of_month()

        assert result.day == 1
        assert result <= utc_now()
