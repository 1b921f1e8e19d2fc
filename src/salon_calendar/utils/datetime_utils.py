"""
Date and time-of-day utilities for the scheduling core.

Times of day are handled internally as integer minutes since midnight and
only converted to and from "HH:MM" strings at the boundary. Weekdays follow
the salon convention 0=Sunday ... 6=Saturday, which differs from Python's
date.weekday() (0=Monday).
"""

import logging
from datetime import date, datetime
from typing import Tuple, Union
from zoneinfo import ZoneInfo

from salon_calendar.core.config import APP_TIMEZONE
from salon_calendar.core.constants import MINUTES_PER_DAY, MINUTES_PER_HOUR

logger = logging.getLogger(__name__)

SALON_TZ = ZoneInfo(APP_TIMEZONE)


def salon_now() -> datetime:
    """
    Get current datetime in the salon's timezone.

    Returns:
        Current timezone-aware datetime
    """
    return datetime.now(SALON_TZ)


def parse_date_string(date_str: str) -> date:
    """
    Parse a date string in YYYY-MM-DD or YYYY/MM/DD format.

    Single-digit months and days are accepted ("2025-9-6").

    Args:
        date_str: Date string in YYYY-MM-DD or YYYY/MM/DD format

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if not date_str or not date_str.strip():
        raise ValueError("Date string cannot be empty")

    date_str = date_str.strip()

    if '/' in date_str:
        parts = date_str.split('/')
    elif '-' in date_str:
        parts = date_str.split('-')
    else:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}")

    if len(parts) != 3:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}")

    normalized = f"{parts[0].zfill(4)}-{parts[1].zfill(2)}-{parts[2].zfill(2)}"

    try:
        return datetime.strptime(normalized, '%Y-%m-%d').date()
    except ValueError as e:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}") from e


def coerce_date(value: Union[date, datetime, str]) -> date:
    """
    Accept a date, datetime or date string and return a date.

    Raises:
        ValueError: If a string cannot be parsed or the type is unsupported
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date_string(value)
    raise ValueError(f"Unsupported date value: {value!r}")


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime('%Y-%m-%d')


def sunday_based_weekday(value: date) -> int:
    """Weekday number with 0=Sunday ... 6=Saturday."""
    return (value.weekday() + 1) % 7


def parse_time_string(time_str: str) -> int:
    """
    Parse an "HH:MM" time of day into minutes since midnight.

    "24:00" is accepted as the end of the day.

    Args:
        time_str: Time string such as "09:30" or "9:30"

    Returns:
        Minutes since midnight (0..1440)

    Raises:
        ValueError: If the string is not a valid time of day
    """
    if not isinstance(time_str, str) or ':' not in time_str:
        raise ValueError(f"Invalid time format (expected HH:MM): {time_str!r}")

    hours_str, _, minutes_str = time_str.strip().partition(':')
    if not (hours_str.isdigit() and minutes_str.isdigit() and len(minutes_str) == 2):
        raise ValueError(f"Invalid time format (expected HH:MM): {time_str!r}")

    hours, minutes = int(hours_str), int(minutes_str)
    if minutes >= MINUTES_PER_HOUR:
        raise ValueError(f"Invalid minutes in time: {time_str!r}")

    total = hours * MINUTES_PER_HOUR + minutes
    if total > MINUTES_PER_DAY:
        raise ValueError(f"Time is past the end of the day: {time_str!r}")
    return total


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as a zero-padded "HH:MM" string."""
    hours, mins = divmod(minutes, MINUTES_PER_HOUR)
    return f"{hours:02d}:{mins:02d}"


def parse_time_range_string(range_str: str) -> Tuple[int, int]:
    """
    Parse a "HH:MM-HH:MM" working range as entered on the employee form.

    Args:
        range_str: Range string such as "10:00-16:00"

    Returns:
        (start_minutes, end_minutes)

    Raises:
        ValueError: If either bound is invalid
    """
    start_str, sep, end_str = range_str.partition('-')
    if not sep:
        raise ValueError(f"Invalid time range (expected HH:MM-HH:MM): {range_str!r}")
    return parse_time_string(start_str.strip()), parse_time_string(end_str.strip())


def epoch_millis(value: datetime) -> int:
    """Milliseconds since the Unix epoch for a timezone-aware datetime."""
    return int(value.timestamp() * 1000)
