"""
Dated schedule changes and per-date overrides.

EmployeeScheduleChange rows form an employee's schedule history: each one
replaces the default weekly schedule from its effective date onward, until a
later change supersedes it. EmployeeScheduleOverride rows are one-off
exceptions for a single calendar date and take precedence over both.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional

from sqlalchemy import Date, ForeignKey, Index, String, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from salon_calendar.core.constants import MAX_STRING_LENGTH
from salon_calendar.core.database import Base
from salon_calendar.models.employee import JSONColumn


class EmployeeScheduleChange(Base):
    """A schedule regime that applies from effective_date onward."""

    __tablename__ = "employee_schedule_changes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    employee_id: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), ForeignKey("employees.id"))

    effective_date: Mapped[date] = mapped_column(Date)
    """First calendar date the regime applies to."""

    ranges: Mapped[Dict[str, Any]] = mapped_column(JSONColumn, default=dict)
    """
    Weekday -> ranges, same shape as Employee.schedule.

    A weekday mapped to null means "not working that weekday" under this regime.
    """

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    __table_args__ = (
        Index("idx_schedule_changes_employee_effective", "employee_id", "effective_date"),
    )

    def __repr__(self) -> str:
        return f"<EmployeeScheduleChange(employee_id='{self.employee_id}', effective_date={self.effective_date})>"


class EmployeeScheduleOverride(Base):
    """
    One-off schedule for a single employee on a single date.

    ranges is None when the employee is off that date; otherwise a
    weekday -> ranges mapping of which only the date's weekday is used.
    """

    __tablename__ = "employee_schedule_overrides"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    employee_id: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), ForeignKey("employees.id"))

    override_date: Mapped[date] = mapped_column(Date)

    ranges: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONColumn, nullable=True)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    __table_args__ = (
        UniqueConstraint("employee_id", "override_date", name="uq_schedule_override_employee_date"),
    )

    @property
    def is_day_off(self) -> bool:
        return self.ranges is None

    def __repr__(self) -> str:
        return f"<EmployeeScheduleOverride(employee_id='{self.employee_id}', override_date={self.override_date})>"
