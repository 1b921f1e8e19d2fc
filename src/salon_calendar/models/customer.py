"""
Customer model.

Customers are keyed by the digits of their phone number, so the same person
typed as "691 234 5678" or "+30 6912345678" maps to one row per distinct
digit string.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column

from salon_calendar.core.constants import MAX_STRING_LENGTH
from salon_calendar.core.database import Base


class Customer(Base):
    """Entry in the salon's customer directory."""

    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), primary_key=True)
    """Phone key: the digits of the phone number."""

    phone: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Phone number as last entered."""

    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), default="")

    notes: Mapped[str] = mapped_column(Text, default="")

    last_appointment_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """When the customer's most recent appointment was booked."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    __table_args__ = (
        Index("idx_customers_name", "name"),
    )

    @property
    def phone_key(self) -> str:
        return self.id

    def __repr__(self) -> str:
        return f"<Customer(id='{self.id}', name='{self.name}')>"
