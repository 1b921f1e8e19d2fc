"""
Employee model and weekly schedule validation.

Each employee carries a default weekly schedule stored as JSON: a mapping from
weekday (0=Sunday ... 6=Saturday) to an ordered list of working ranges.
The WeeklySchedule Pydantic model validates that JSON before it is stored or
used by the schedule resolver.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import String, TIMESTAMP
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from salon_calendar.core.constants import MAX_STRING_LENGTH
from salon_calendar.core.database import Base
from salon_calendar.shared_types.scheduling import TimeRange
from salon_calendar.utils.datetime_utils import parse_time_range_string, parse_time_string

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONColumn = JSON().with_variant(JSONB(), "postgresql")


def _parse_range(raw: Any) -> TimeRange:
    """Parse one range given as ["HH:MM", "HH:MM"] or "HH:MM-HH:MM"."""
    if isinstance(raw, str):
        start, end = parse_time_range_string(raw)
        return TimeRange(start, end)
    if isinstance(raw, TimeRange):
        return raw
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return TimeRange(parse_time_string(raw[0]), parse_time_string(raw[1]))
    raise ValueError(f"Invalid working range: {raw!r}")


def parse_day_ranges(raw: Any) -> List[TimeRange]:
    """
    Parse and validate one weekday's working ranges.

    Ranges are sorted ascending by start; overlapping ranges are rejected.
    Touching ranges (one ends where the next starts) are allowed.

    Raises:
        ValueError: If a range is malformed, has start >= end, or overlaps another
    """
    if isinstance(raw, str):
        raw = [part for part in raw.split(',') if part.strip()]
    ranges = sorted(_parse_range(item) for item in raw)
    for previous, current in zip(ranges, ranges[1:]):
        if current.start < previous.end:
            raise ValueError(
                f"Working ranges overlap: {'-'.join(previous.to_hhmm())} and {'-'.join(current.to_hhmm())}"
            )
    return ranges


def parse_weekday_key(key: Any) -> int:
    """Parse a weekday key (int or numeric string) in 0..6."""
    try:
        weekday = int(key)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid weekday key: {key!r}")
    if not 0 <= weekday <= 6:
        raise ValueError(f"Weekday must be between 0 (Sunday) and 6 (Saturday), got {weekday}")
    return weekday


class WeeklySchedule(BaseModel):
    """
    Validated weekly schedule.

    `days` maps weekday (0=Sunday ... 6=Saturday) to working ranges. A weekday
    may map to None, meaning "not working that weekday" (used by dated
    history entries); a missing weekday means the same for resolution.
    """

    days: Dict[int, Optional[List[TimeRange]]] = Field(default_factory=dict)

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("days", mode="before")
    @classmethod
    def parse_days(cls, value: Any) -> Dict[int, Optional[List[TimeRange]]]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("Schedule must be a mapping of weekday to ranges")
        parsed: Dict[int, Optional[List[TimeRange]]] = {}
        for key, day_ranges in value.items():
            weekday = parse_weekday_key(key)
            parsed[weekday] = None if day_ranges is None else parse_day_ranges(day_ranges)
        return parsed

    @classmethod
    def from_raw(cls, raw: Optional[Dict[Any, Any]]) -> "WeeklySchedule":
        return cls(days=raw or {})

    def ranges_for(self, weekday: int) -> Optional[List[TimeRange]]:
        return self.days.get(weekday)

    def to_json(self) -> Dict[str, Optional[List[List[str]]]]:
        """Serialize to the JSON-column shape with "HH:MM" pairs."""
        return {
            str(weekday): None if day_ranges is None else [r.to_hhmm() for r in day_ranges]
            for weekday, day_ranges in sorted(self.days.items())
        }


class Employee(Base):
    """
    Employee working in the salon.

    The employee id is the short slug used as the calendar column key
    (e.g. "aggelikh"); appointments reference it directly.
    """

    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), primary_key=True)
    """Calendar column key."""

    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Display name."""

    schedule: Mapped[Dict[str, Any]] = mapped_column(JSONColumn, default=dict)
    """
    Default weekly schedule as JSON.

    Structure: {"2": [["10:00", "16:00"], ["19:00", "21:00"]], ...}
    Keys are weekdays 0=Sunday ... 6=Saturday.
    """

    is_active: Mapped[bool] = mapped_column(default=True)
    """Inactive employees are hidden from the calendar and never resolved."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    def get_validated_schedule(self) -> WeeklySchedule:
        """
        Get the default schedule with validation.

        Raises:
            pydantic.ValidationError: If the stored JSON is malformed
        """
        return WeeklySchedule.from_raw(self.schedule)

    def set_validated_schedule(self, schedule: WeeklySchedule) -> None:
        self.schedule = schedule.to_json()

    def __repr__(self) -> str:
        return f"<Employee(id='{self.id}', name='{self.name}')>"
