"""
Test utilities for salon calendar tests.
"""

from datetime import date

from salon_calendar.shared_types.scheduling import AppointmentRecord
from salon_calendar.utils.datetime_utils import parse_time_string

# Weekdays in the fixtures (2025-09-01 is a Monday)
TUESDAY = date(2025, 10, 7)
FRIDAY = date(2025, 10, 10)
SUNDAY = date(2025, 10, 5)


def make_appointment(
    appointment_id: str,
    time: str,
    duration: int = 30,
    employee: str = "A",
    day: date = TUESDAY,
    **fields,
) -> AppointmentRecord:
    """Create an AppointmentRecord with sensible defaults for scheduling tests."""
    return AppointmentRecord(
        id=appointment_id,
        date=day,
        employee=employee,
        start_minutes=parse_time_string(time),
        duration=duration,
        client=fields.pop("client", "Test Client"),
        phone=fields.pop("phone", "6900000000"),
        **fields,
    )


def quarter_hours(start: str, last: str) -> list:
    """Every quarter hour from start to last inclusive, as "HH:MM"."""
    first, final = parse_time_string(start), parse_time_string(last)
    return [f"{m // 60:02d}:{m % 60:02d}" for m in range(first, final + 1, 15)]
