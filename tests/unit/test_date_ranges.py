"""Unit tests for HST report windows."""

from datetime import datetime, time, timezone

import pytest

from backend.database.core.date_ranges import HST, date_range, format_hst, hst_date, sub_months

# Friday 2025-09-12, 10:00 in Honolulu
NOW = datetime(2025, 9, 12, 20, 0, tzinfo=timezone.utc)


def hst(year, month, day, at=time.min):
    return datetime.combine(datetime(year, month, day).date(), at, tzinfo=HST)


class TestDateRange:
    """Test suite for date_range."""

    def test_current_day(self):
        assert date_range("day", "current", now=NOW) == (hst(2025, 9, 12), hst(2025, 9, 12, time.max))

    def test_last_day(self):
        start, end = date_range("day", "last", now=NOW)
        assert start == hst(2025, 9, 11)
        assert end == hst(2025, 9, 11, time.max)

    def test_week_starts_on_sunday(self):
        start, end = date_range("week", "current", now=NOW)
        assert start == hst(2025, 9, 7)
        assert end == hst(2025, 9, 13, time.max)

    def test_week_on_a_sunday(self):
        sunday = datetime(2025, 9, 7, 20, 0, tzinfo=timezone.utc)
        assert date_range("week", "current", now=sunday)[0] == hst(2025, 9, 7)

    def test_last_month(self):
        start, end = date_range("month", "last", now=NOW)
        assert start == hst(2025, 8, 1)
        assert end == hst(2025, 8, 31, time.max)

    def test_current_year(self):
        start, end = date_range("year", "current", now=NOW)
        assert start == hst(2025, 1, 1)
        assert end == hst(2025, 12, 31, time.max)

    def test_all_day_window(self):
        start, end = date_range("day", "all", now=NOW)
        assert start == hst(2025, 8, 13)
        assert end == hst(2025, 9, 12, time.max)

    def test_custom_inclusive(self):
        start, end = date_range("custom", now=NOW, start_date="2025-09-01", end_date="2025-09-03")
        assert start == hst(2025, 9, 1)
        assert end == hst(2025, 9, 3, time.max)

    def test_custom_reversed_raises(self):
        with pytest.raises(ValueError):
            date_range("custom", now=NOW, start_date="2025-09-05", end_date="2025-09-01")

    def test_custom_bad_date_raises(self):
        with pytest.raises(ValueError):
            date_range("custom", now=NOW, start_date="09/01/2025")


class TestHstHelpers:
    """Test suite for HST conversions."""

    def test_utc_morning_is_previous_hst_day(self):
        assert hst_date(datetime(2025, 9, 13, 5, 0, tzinfo=timezone.utc)).isoformat() == "2025-09-12"

    def test_format_hst(self):
        assert format_hst(NOW) == "2025-09-12 10:00:00 HST"

    def test_sub_months_clamps_day(self):
        assert sub_months(hst(2025, 3, 31), 1) == hst(2025, 2, 28)
        assert sub_months(hst(2025, 1, 15), 1) == hst(2024, 12, 15)
