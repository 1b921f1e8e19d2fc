"""
Services package for scheduling business logic.

This package contains the schedule resolver, availability arithmetic and the
appointment, customer and waitlist services built on top of them.
"""

from .schedule_service import (
    ScheduleRepository,
    ScheduleResolver,
    build_default_repository,
)
from .business_hours_service import BusinessHoursService
from .availability_service import AvailabilityService
from .appointment_store import AppointmentStore, InMemoryAppointmentStore, SqlAlchemyAppointmentStore
from .appointment_service import AppointmentService
from .customer_service import CustomerService
from .waitlist_service import WaitlistService

__all__ = [
    "ScheduleRepository",
    "ScheduleResolver",
    "build_default_repository",
    "BusinessHoursService",
    "AvailabilityService",
    "AppointmentStore",
    "InMemoryAppointmentStore",
    "SqlAlchemyAppointmentStore",
    "AppointmentService",
    "CustomerService",
    "WaitlistService",
]
