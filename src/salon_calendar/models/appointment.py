"""
Appointment model.

Stores one booked appointment per row. The scheduling fields (date, employee,
start time, duration) are what the availability engine reasons about; the
client and business fields are carried for the calendar but never affect
scheduling.
"""

from datetime import date as date_type, datetime, time
from typing import Optional

from sqlalchemy import Date, Index, Numeric, String, Text, Time, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from salon_calendar.core.constants import MAX_ID_LENGTH, MAX_STRING_LENGTH
from salon_calendar.core.database import Base
from salon_calendar.shared_types.scheduling import AppointmentRecord


class Appointment(Base):
    """
    Booked appointment for one employee on one date.

    Invariant maintained by AppointmentService: for a fixed employee_id and
    date, no two rows have overlapping [start_time, start_time + duration)
    intervals.
    """

    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(MAX_ID_LENGTH), primary_key=True)
    """Appointment id: "<date>_<employee>_<HH:MM>_<epoch millis>"."""

    date: Mapped[date_type] = mapped_column(Date)

    employee_id: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Employee owning the calendar column the appointment sits in."""

    display_employee_id: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    """Employee the client asked for. Cosmetic only."""

    start_time: Mapped[time] = mapped_column(Time)

    duration: Mapped[int] = mapped_column()
    """Duration in minutes."""

    client: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), default="")
    phone: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    price: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    payment_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    starred: Mapped[bool] = mapped_column(default=False)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    __table_args__ = (
        Index("idx_appointments_date_employee", "date", "employee_id"),
    )

    @property
    def start_minutes(self) -> int:
        return self.start_time.hour * 60 + self.start_time.minute

    def to_record(self) -> AppointmentRecord:
        """Convert to the engine's AppointmentRecord."""
        return AppointmentRecord(
            id=self.id,
            date=self.date,
            employee=self.employee_id,
            start_minutes=self.start_minutes,
            duration=self.duration,
            client=self.client or "",
            phone=self.phone or "",
            description=self.description or "",
            price=self.price,
            payment_type=self.payment_type,
            status=self.status,
            starred=bool(self.starred),
            display_employee=self.display_employee_id,
            created_at=self.created_at,
        )

    def apply_record(self, record: AppointmentRecord) -> None:
        """Copy every field of an AppointmentRecord onto this row (id excluded)."""
        hours, minutes = divmod(record.start_minutes, 60)
        self.date = record.date
        self.employee_id = record.employee
        self.display_employee_id = record.display_employee
        self.start_time = time(hours, minutes)
        self.duration = record.duration
        self.client = record.client
        self.phone = record.phone
        self.description = record.description
        self.price = record.price
        self.payment_type = record.payment_type
        self.status = record.status
        self.starred = record.starred
        if record.created_at is not None:
            self.created_at = record.created_at

    @classmethod
    def from_record(cls, record: AppointmentRecord) -> "Appointment":
        appointment = cls(id=record.id)
        appointment.apply_record(record)
        return appointment

    def __repr__(self) -> str:
        return (
            f"<Appointment(id='{self.id}', date={self.date}, employee_id='{self.employee_id}', "
            f"start_time={self.start_time}, duration={self.duration})>"
        )
