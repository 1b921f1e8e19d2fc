"""
Waitlist entry model.

Clients who could not get a slot on a given date are recorded on that date's
waitlist, in arrival order.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, String, Text, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column

from salon_calendar.core.constants import MAX_STRING_LENGTH
from salon_calendar.core.database import Base


class WaitlistEntry(Base):
    """A client waiting for a slot on a specific date."""

    __tablename__ = "waitlist_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    waiting_date: Mapped[date] = mapped_column(Date)
    """Date the client wants an appointment on."""

    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), default="")
    phone: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), default="")

    prefs: Mapped[str] = mapped_column(Text, default="")
    """Free-text preferences (employee, time of day, service)."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    __table_args__ = (
        Index("idx_waitlist_date_created", "waiting_date", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<WaitlistEntry(id={self.id}, waiting_date={self.waiting_date}, name='{self.name}')>"
