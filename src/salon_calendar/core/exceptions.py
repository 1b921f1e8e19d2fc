"""
Domain exceptions for the scheduling core.

Every rejection the core can report is a SchedulingError subclass carrying a
reason code. Service methods raise these and the public save/move entry
points convert them into structured rejections, so none of them is fatal to
the caller.
"""

from typing import List, Optional

from salon_calendar.core.constants import (
    REJECTION_MISSING_FIELD,
    REJECTION_OUTSIDE_HOURS,
    REJECTION_SLOT_CONFLICT,
)
from salon_calendar.shared_types.scheduling import Rejection


class SchedulingError(Exception):
    """Base class for recoverable scheduling rejections."""

    reason: str = ""

    def __init__(self, message: str, conflicting_appointment_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.conflicting_appointment_id = conflicting_appointment_id

    def to_rejection(self) -> Rejection:
        """Convert to the structured rejection returned to callers."""
        return Rejection(
            reason=self.reason,
            conflicting_appointment_id=self.conflicting_appointment_id,
            message=self.message,
        )


class OutsideWorkingHoursError(SchedulingError):
    """The requested interval is not inside any working interval of the employee."""

    reason = REJECTION_OUTSIDE_HOURS


class SlotConflictError(SchedulingError):
    """The requested interval overlaps an existing appointment."""

    reason = REJECTION_SLOT_CONFLICT


class StaleDataConflictError(SlotConflictError):
    """
    Conflict found only after re-fetching the day's appointments at save time.

    Reported exactly like SlotConflictError; the separate type records that the
    locally cached view was stale.
    """


class MissingRequiredFieldError(SchedulingError):
    """One or more required appointment fields are missing or invalid."""

    reason = REJECTION_MISSING_FIELD

    def __init__(self, missing_fields: List[str], message: Optional[str] = None):
        self.missing_fields = list(missing_fields)
        super().__init__(message or f"Missing required fields: {', '.join(self.missing_fields)}")

    def to_rejection(self) -> Rejection:
        rejection = super().to_rejection()
        rejection.missing_fields = list(self.missing_fields)
        return rejection


class TransientFetchError(Exception):
    """Fetching appointments from the persistence collaborator failed; safe to retry."""


class AppointmentNotFoundError(LookupError):
    """No stored appointment has the requested id."""

    def __init__(self, appointment_id: str):
        super().__init__(f"Appointment not found: {appointment_id}")
        self.appointment_id = appointment_id
