"""
Shared types for scheduling functionality.

This module contains the data classes exchanged between the schedule resolver,
the availability service and the appointment service. Times of day are held
as minutes since midnight; "HH:MM" strings only appear in to_dict/from_dict.
"""

from dataclasses import dataclass, field
from datetime import date as date_type, datetime
from typing import Any, Dict, List, Optional

from salon_calendar.utils.datetime_utils import (
    coerce_date,
    format_date,
    format_minutes,
    parse_time_string,
)


@dataclass(frozen=True, order=True)
class TimeRange:
    """
    A half-open working interval [start, end) in minutes since midnight.

    Ordering is by start then end, so sorted() gives ranges ascending by start.
    """
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(
                f"Range start must be before end: {format_minutes(self.start)}-{format_minutes(self.end)}"
            )

    def contains(self, minute: int) -> bool:
        """True if minute falls inside [start, end)."""
        return self.start <= minute < self.end

    def covers(self, start: int, end: int) -> bool:
        """True if [start, end) lies entirely inside this range."""
        return self.start <= start and end <= self.end

    def to_hhmm(self) -> List[str]:
        return [format_minutes(self.start), format_minutes(self.end)]

    @classmethod
    def from_hhmm(cls, start: str, end: str) -> "TimeRange":
        return cls(parse_time_string(start), parse_time_string(end))


@dataclass
class AppointmentRecord:
    """
    An appointment as seen by the scheduling engine.

    Only id, date, employee, start_minutes and duration take part in
    scheduling; the remaining fields are carried through untouched.
    display_employee is the client's preferred employee and is cosmetic.
    """
    id: str
    date: date_type
    employee: str
    start_minutes: int
    duration: int
    client: str = ""
    phone: str = ""
    description: str = ""
    price: Optional[float] = None
    payment_type: Optional[str] = None
    status: Optional[str] = None
    starred: bool = False
    display_employee: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration

    @property
    def time(self) -> str:
        """Start time as "HH:MM"."""
        return format_minutes(self.start_minutes)

    @property
    def date_key(self) -> str:
        return format_date(self.date)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the external appointment record shape."""
        result: Dict[str, Any] = {
            "id": self.id,
            "date": self.date_key,
            "employee": self.employee,
            "time": self.time,
            "duration": self.duration,
            "client": self.client,
            "phone": self.phone,
            "description": self.description,
            "price": self.price,
            "payment_type": self.payment_type,
            "status": self.status,
            "starred": self.starred,
        }
        if self.display_employee is not None:
            result["display_employee"] = self.display_employee
        if self.created_at is not None:
            result["created_at"] = self.created_at.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppointmentRecord":
        """
        Create an AppointmentRecord from the external record shape.

        Raises:
            ValueError: If id, date, employee, time or duration is missing or malformed
        """
        for key in ("id", "date", "employee", "time", "duration"):
            if data.get(key) in (None, ""):
                raise ValueError(f"{key} is required")

        duration = data["duration"]
        if isinstance(duration, bool) or not isinstance(duration, int):
            raise ValueError(f"duration must be int, got {type(duration)}")

        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return cls(
            id=str(data["id"]),
            date=coerce_date(data["date"]),
            employee=str(data["employee"]),
            start_minutes=parse_time_string(data["time"]),
            duration=duration,
            client=data.get("client") or "",
            phone=data.get("phone") or "",
            description=data.get("description") or "",
            price=data.get("price"),
            payment_type=data.get("payment_type"),
            status=data.get("status"),
            starred=bool(data.get("starred", False)),
            display_employee=data.get("display_employee"),
            created_at=created_at,
        )


@dataclass
class Rejection:
    """Structured reason a create/update/move was refused."""
    reason: str  # SLOT_CONFLICT | OUTSIDE_HOURS | MISSING_FIELD
    conflicting_appointment_id: Optional[str] = None
    message: Optional[str] = None
    missing_fields: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"reason": self.reason}
        if self.conflicting_appointment_id is not None:
            result["conflicting_appointment_id"] = self.conflicting_appointment_id
        if self.message:
            result["message"] = self.message
        if self.missing_fields:
            result["missing_fields"] = list(self.missing_fields)
        return result


@dataclass
class SaveResult:
    """Outcome of a save: the persisted appointment id or a rejection."""
    success: bool
    appointment_id: Optional[str] = None
    rejection: Optional[Rejection] = None

    @classmethod
    def ok(cls, appointment_id: str) -> "SaveResult":
        return cls(success=True, appointment_id=appointment_id)

    @classmethod
    def rejected(cls, rejection: Rejection) -> "SaveResult":
        return cls(success=False, rejection=rejection)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "appointment_id": self.appointment_id}
        return {
            "success": False,
            "rejection": self.rejection.to_dict() if self.rejection else None,
        }
