"""
Unit tests for date and time-of-day utilities.
"""

import pytest
from datetime import date, datetime, timezone

from salon_calendar.utils.datetime_utils import (
    coerce_date,
    epoch_millis,
    format_minutes,
    parse_date_string,
    parse_time_range_string,
    parse_time_string,
    salon_now,
    sunday_based_weekday,
)


class TestParseDateString:
    """Test date string parsing."""

    def test_dash_format(self):
        """Test YYYY-MM-DD parsing."""
        assert parse_date_string("2025-09-23") == date(2025, 9, 23)

    def test_slash_format_and_single_digits(self):
        """Test YYYY/M/D parsing with single-digit month and day."""
        assert parse_date_string("2025/9/6") == date(2025, 9, 6)

    @pytest.mark.parametrize("value", ["", "   ", "20250923", "2025-13-01", "2025-02-30", "not-a-date"])
    def test_invalid_dates_raise(self, value):
        """Test that malformed dates raise ValueError."""
        with pytest.raises(ValueError):
            parse_date_string(value)

    def test_coerce_date_accepts_date_datetime_and_string(self):
        """Test coerce_date with each supported input type."""
        assert coerce_date(date(2025, 9, 23)) == date(2025, 9, 23)
        assert coerce_date(datetime(2025, 9, 23, 14, 0)) == date(2025, 9, 23)
        assert coerce_date("2025-09-23") == date(2025, 9, 23)

    def test_coerce_date_rejects_other_types(self):
        """Test that None and numbers are rejected."""
        with pytest.raises(ValueError):
            coerce_date(None)
        with pytest.raises(ValueError):
            coerce_date(20250923)


class TestWeekday:
    """Test the Sunday-based weekday numbering."""

    def test_sunday_is_zero_and_saturday_is_six(self):
        """Test the 0=Sunday ... 6=Saturday convention."""
        assert sunday_based_weekday(date(2025, 9, 28)) == 0  # Sunday
        assert sunday_based_weekday(date(2025, 9, 29)) == 1  # Monday
        assert sunday_based_weekday(date(2025, 9, 23)) == 2  # Tuesday
        assert sunday_based_weekday(date(2025, 9, 27)) == 6  # Saturday


class TestTimeOfDay:
    """Test HH:MM conversion to and from minutes since midnight."""

    def test_parse_time_string(self):
        """Test parsing zero-padded and unpadded times."""
        assert parse_time_string("00:00") == 0
        assert parse_time_string("09:30") == 570
        assert parse_time_string("9:30") == 570
        assert parse_time_string("21:00") == 1260
        assert parse_time_string("24:00") == 1440

    @pytest.mark.parametrize("value", ["", "930", "09:3", "09:60", "24:15", "ab:cd", "-1:00", None])
    def test_parse_time_string_invalid(self, value):
        """Test that malformed times raise ValueError."""
        with pytest.raises(ValueError):
            parse_time_string(value)

    def test_format_minutes_zero_pads(self):
        """Test that formatted times are fixed-width."""
        assert format_minutes(0) == "00:00"
        assert format_minutes(570) == "09:30"
        assert format_minutes(1260) == "21:00"

    def test_parse_time_range_string(self):
        """Test parsing the employee form's range format."""
        assert parse_time_range_string("10:00-16:00") == (600, 960)
        assert parse_time_range_string(" 19:00 - 21:00 ") == (1140, 1260)

    def test_parse_time_range_string_without_separator(self):
        """Test that a range without a dash is rejected."""
        with pytest.raises(ValueError):
            parse_time_range_string("10:00")


class TestTimestamps:
    """Test timestamp helpers."""

    def test_salon_now_is_timezone_aware(self):
        """Test that salon_now returns an aware datetime."""
        assert salon_now().tzinfo is not None

    def test_epoch_millis(self):
        """Test millisecond epoch conversion."""
        assert epoch_millis(datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)) == 1000
