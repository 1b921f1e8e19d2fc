"""
Availability service for slot generation and conflict checks.

This module contains the scheduling arithmetic shared by the booking form
(slot lists), the calendar's drag-and-drop moves (can_place) and save-time
validation (conflict lookup). Everything here is pure: appointments are
passed in, nothing is fetched.

Intervals are half-open [start, end) in minutes since midnight, so an
appointment ending at 10:30 does not conflict with one starting at 10:30.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Set, Union

from salon_calendar.core.config import SLOT_GRANULARITY_MINUTES
from salon_calendar.services.schedule_service import ScheduleResolver
from salon_calendar.shared_types.scheduling import AppointmentRecord, TimeRange
from salon_calendar.utils.datetime_utils import coerce_date, format_minutes, parse_time_string

logger = logging.getLogger(__name__)

TimeOfDay = Union[int, str]


def _to_minutes(value: TimeOfDay) -> int:
    return value if isinstance(value, int) else parse_time_string(value)


class AvailabilityService:
    """
    Service class for availability operations.

    Static methods taking the schedule resolver and the day's appointments
    explicitly, so callers decide where the data comes from.
    """

    @staticmethod
    def _check_time_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
        """Check if two half-open time intervals overlap."""
        return start1 < end2 and start2 < end1

    @staticmethod
    def appointments_for_employee(
        appointments: Iterable[AppointmentRecord],
        employee_id: str,
        day: date,
        exclude_appointment_ids: Optional[Set[str]] = None,
    ) -> List[AppointmentRecord]:
        """
        Filter appointments to one employee and date, sorted by start time.

        Args:
            appointments: Appointments to filter (any dates/employees)
            employee_id: Employee to keep
            day: Date to keep
            exclude_appointment_ids: Appointment ids to drop (the one being edited or moved)

        Returns:
            Matching appointments ordered by start_minutes
        """
        excluded = exclude_appointment_ids or set()
        matching = [
            appointment for appointment in appointments
            if appointment.employee == employee_id
            and appointment.date == day
            and appointment.id not in excluded
        ]
        return sorted(matching, key=lambda appointment: appointment.start_minutes)

    @staticmethod
    def find_conflicting_appointment(
        appointments: Iterable[AppointmentRecord],
        start: int,
        end: int,
    ) -> Optional[AppointmentRecord]:
        """
        Find the earliest appointment overlapping [start, end).

        Callers pass appointments already filtered to one employee and date.

        Returns:
            The first overlapping appointment by start time, or None
        """
        for appointment in sorted(appointments, key=lambda a: a.start_minutes):
            if AvailabilityService._check_time_overlap(
                start, end, appointment.start_minutes, appointment.end_minutes
            ):
                return appointment
        return None

    @staticmethod
    def has_slot_conflicts(appointments: Iterable[AppointmentRecord], start: int, end: int) -> bool:
        """Check if [start, end) overlaps any of the given appointments."""
        return AvailabilityService.find_conflicting_appointment(appointments, start, end) is not None

    @staticmethod
    def find_containing_range(ranges: Iterable[TimeRange], minute: int) -> Optional[TimeRange]:
        """Working range containing the given minute, if any."""
        for time_range in ranges:
            if time_range.contains(minute):
                return time_range
        return None

    @staticmethod
    def is_slot_within_working_ranges(ranges: Iterable[TimeRange], start: int, end: int) -> bool:
        """Check if [start, end) lies entirely inside one working range."""
        return any(time_range.covers(start, end) for time_range in ranges)

    @staticmethod
    def _generate_candidate_starts(
        ranges: Iterable[TimeRange],
        duration_minutes: int,
        step_size_minutes: int,
    ) -> List[int]:
        """
        Generate candidate start minutes inside working ranges.

        For each range the cursor walks from the range start in steps of
        step_size_minutes, up to and including range end minus duration.
        """
        candidates: List[int] = []
        for time_range in ranges:
            cursor = time_range.start
            while cursor + duration_minutes <= time_range.end:
                candidates.append(cursor)
                cursor += step_size_minutes
        return candidates

    @staticmethod
    def compute_available_slots(
        resolver: ScheduleResolver,
        day: Union[date, str],
        employee_id: str,
        duration_minutes: Optional[int],
        existing_appointments: Iterable[AppointmentRecord],
        exclude_appointment_id: Optional[str] = None,
        slot_granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    ) -> List[str]:
        """
        Compute bookable start times for an employee on a date.

        A zero or missing duration is treated as one granularity step, so the
        result lists every free start.

        Args:
            resolver: Schedule resolver for working ranges
            day: Date or "YYYY-MM-DD" string
            employee_id: Employee to book
            duration_minutes: Requested duration
            existing_appointments: Appointments to avoid (other employees/dates are ignored)
            exclude_appointment_id: Appointment being edited, ignored as an obstacle
            slot_granularity_minutes: Step between candidate starts

        Returns:
            Ascending, deduplicated "HH:MM" start times; empty when the
            employee does not work that date or nothing fits

        Raises:
            ValueError: If granularity is not positive or duration is negative
        """
        if slot_granularity_minutes <= 0:
            raise ValueError(f"Slot granularity must be positive, got {slot_granularity_minutes}")
        if duration_minutes is not None and duration_minutes < 0:
            raise ValueError(f"Duration cannot be negative, got {duration_minutes}")
        duration = duration_minutes or slot_granularity_minutes

        try:
            resolved_day = coerce_date(day)
        except ValueError:
            return []

        ranges = resolver.resolve_schedule(employee_id, resolved_day)
        if not ranges:
            return []

        excluded = {exclude_appointment_id} if exclude_appointment_id else set()
        booked = AvailabilityService.appointments_for_employee(
            existing_appointments, employee_id, resolved_day, excluded
        )

        free_starts: Set[int] = set()
        for start in AvailabilityService._generate_candidate_starts(ranges, duration, slot_granularity_minutes):
            if not AvailabilityService.has_slot_conflicts(booked, start, start + duration):
                free_starts.add(start)

        return [format_minutes(start) for start in sorted(free_starts)]

    @staticmethod
    def max_free_minutes(
        resolver: ScheduleResolver,
        employee_id: str,
        day: Union[date, str],
        slot_start: TimeOfDay,
        existing_appointments: Iterable[AppointmentRecord],
        exclude_appointment_id: Optional[str] = None,
    ) -> int:
        """
        Longest duration that can start at slot_start.

        Bounded by the next appointment starting strictly after slot_start or,
        if none comes first, the end of the working range containing slot_start.

        Args:
            resolver: Schedule resolver for working ranges
            employee_id: Employee id
            day: Date or "YYYY-MM-DD" string
            slot_start: Start as minutes since midnight or "HH:MM"
            existing_appointments: The day's appointments
            exclude_appointment_id: Appointment being edited

        Returns:
            Free minutes, 0 when slot_start is outside every working range
        """
        try:
            resolved_day = coerce_date(day)
            start = _to_minutes(slot_start)
        except ValueError:
            return 0

        containing = AvailabilityService.find_containing_range(
            resolver.resolve_schedule(employee_id, resolved_day), start
        )
        if containing is None:
            return 0

        excluded = {exclude_appointment_id} if exclude_appointment_id else set()
        booked = AvailabilityService.appointments_for_employee(
            existing_appointments, employee_id, resolved_day, excluded
        )

        limit = containing.end
        next_appointment = next((a for a in booked if a.start_minutes > start), None)
        if next_appointment is not None and next_appointment.start_minutes < limit:
            limit = next_appointment.start_minutes

        return max(0, limit - start)

    @staticmethod
    def _is_minute_covered(appointments: Iterable[AppointmentRecord], minute: int) -> bool:
        return any(a.start_minutes <= minute < a.end_minutes for a in appointments)

    @staticmethod
    def can_place(
        resolver: ScheduleResolver,
        appointment: AppointmentRecord,
        target_employee: str,
        target_slot: TimeOfDay,
        existing_appointments: Iterable[AppointmentRecord],
        exclude_appointment_ids: Optional[Set[str]] = None,
        slot_granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    ) -> bool:
        """
        Check whether an appointment fits at target_employee/target_slot on its date.

        Two checks must both pass: the free minutes at the target cover the
        duration, and no granularity step inside [target_slot, target_slot +
        duration) falls within another appointment.

        Args:
            resolver: Schedule resolver for working ranges
            appointment: Appointment being placed (its own id is always excluded)
            target_employee: Employee column to place it in
            target_slot: Start as minutes since midnight or "HH:MM"
            existing_appointments: The day's appointments
            exclude_appointment_ids: Extra ids to ignore
            slot_granularity_minutes: Step used by the coverage check

        Returns:
            True if the appointment can be placed
        """
        try:
            start = _to_minutes(target_slot)
        except ValueError:
            return False

        excluded = set(exclude_appointment_ids or set())
        excluded.add(appointment.id)
        others = AvailabilityService.appointments_for_employee(
            existing_appointments, target_employee, appointment.date, excluded
        )

        free_minutes = AvailabilityService.max_free_minutes(
            resolver, target_employee, appointment.date, start, others
        )
        if free_minutes < appointment.duration:
            return False

        for minute in range(start, start + appointment.duration, slot_granularity_minutes):
            if AvailabilityService._is_minute_covered(others, minute):
                logger.warning(
                    f"Coverage check rejected {appointment.id} at {format_minutes(start)} for "
                    f"{target_employee} although {free_minutes} minutes looked free"
                )
                return False

        return True
