"""
Shared type definitions for the salon calendar.

This module contains dataclasses that are used across multiple services.
"""

from salon_calendar.shared_types.scheduling import (
    AppointmentRecord,
    Rejection,
    SaveResult,
    TimeRange,
)

__all__ = ["AppointmentRecord", "Rejection", "SaveResult", "TimeRange"]
