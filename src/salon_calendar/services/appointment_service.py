"""
Appointment service for creating, editing, moving and deleting appointments.

Every create/edit/move that changes where an appointment sits is validated
at save time against a freshly fetched copy of the day's appointments. The
re-fetch is retried with exponential backoff; if it keeps failing, the
locally cached copy is used instead and a warning is logged. This check is
best-effort: two saves racing between re-fetch and write can still collide.
"""

import dataclasses
import functools
import logging
import time
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Set, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_calendar.core.config import (
    DEFAULT_APPOINTMENT_DURATION_MINUTES,
    REFETCH_BASE_DELAY_SECONDS,
    REFETCH_MAX_ATTEMPTS,
    SLOT_GRANULARITY_MINUTES,
)
from salon_calendar.core.constants import (
    APPOINTMENT_DURATION_OPTIONS,
    MAX_CUSTOM_DURATION_MINUTES,
    MIN_CUSTOM_DURATION_MINUTES,
    REQUIRED_APPOINTMENT_FIELDS,
)
from salon_calendar.core.exceptions import (
    AppointmentNotFoundError,
    MissingRequiredFieldError,
    OutsideWorkingHoursError,
    SchedulingError,
    SlotConflictError,
    StaleDataConflictError,
    TransientFetchError,
)
from salon_calendar.services.appointment_store import AppointmentStore
from salon_calendar.services.availability_service import AvailabilityService
from salon_calendar.services.customer_service import CustomerService
from salon_calendar.services.schedule_service import ScheduleResolver
from salon_calendar.shared_types.scheduling import AppointmentRecord, SaveResult
from salon_calendar.utils.datetime_utils import (
    coerce_date,
    epoch_millis,
    format_date,
    format_minutes,
    parse_time_string,
    salon_now,
)

logger = logging.getLogger(__name__)

# Fields whose change requires re-validating the appointment's placement
SCHEDULING_FIELDS = ("date", "employee", "time", "duration")


def _retry_on_transient_failure(
    max_attempts: int = REFETCH_MAX_ATTEMPTS,
    base_delay: float = REFETCH_BASE_DELAY_SECONDS,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator to retry store reads that fail with TransientFetchError.

    Waits base_delay * 2**attempt seconds between attempts and re-raises the
    last error once max_attempts have failed.

    Args:
        max_attempts: Total number of attempts, including the first
        base_delay: Delay in seconds before the first retry
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except TransientFetchError as e:
                    if attempt + 1 >= max_attempts:
                        raise
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Transient failure in {func.__name__} (attempt {attempt + 1}/{max_attempts}), "
                        f"retrying in {delay:.2f} seconds: {e}"
                    )
                    time.sleep(delay)
            raise TransientFetchError(f"{func.__name__} was not attempted (max_attempts={max_attempts})")
        return wrapper
    return decorator


def generate_appointment_id(day: date, employee: str, start_minutes: int, now: Optional[datetime] = None) -> str:
    """Appointment id in the form "<YYYY-MM-DD>_<employee>_<HH:MM>_<epoch millis>"."""
    created = now or salon_now()
    return f"{format_date(day)}_{employee}_{format_minutes(start_minutes)}_{epoch_millis(created)}"


class AppointmentService:
    """
    Appointment lifecycle over an AppointmentStore.

    Keeps a per-date cache of the appointments last fetched, which stands in
    for the calendar's local view. Slot lists and can_place checks run
    against that cache; saves re-validate against fresh data.
    """

    def __init__(
        self,
        store: AppointmentStore,
        resolver: ScheduleResolver,
        db: Optional[Session] = None,
        slot_granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    ):
        """
        Args:
            store: Persistence collaborator for appointments
            resolver: Schedule resolver for working ranges
            db: Session for the customer directory; customers are not touched when None
            slot_granularity_minutes: Step between candidate slots
        """
        self.store = store
        self.resolver = resolver
        self.db = db
        self.slot_granularity_minutes = slot_granularity_minutes
        self._cache: Dict[date, List[AppointmentRecord]] = {}

    # ===== Local view =====

    @_retry_on_transient_failure()
    def _fetch_appointments(self, day: date) -> List[AppointmentRecord]:
        return self.store.fetch_appointments(day)

    def refresh_appointments(self, day: Union[date, str]) -> List[AppointmentRecord]:
        """
        Re-fetch a date's appointments and update the cache.

        Falls back to the cached copy, with a warning, when every retry fails.
        """
        resolved_day = coerce_date(day)
        try:
            fresh = self._fetch_appointments(resolved_day)
        except TransientFetchError as e:
            logger.warning(
                f"Could not refresh appointments for {resolved_day} after {REFETCH_MAX_ATTEMPTS} attempts, "
                f"using cached data: {e}"
            )
            return self.cached_appointments(resolved_day)
        self._cache[resolved_day] = list(fresh)
        return list(fresh)

    def cached_appointments(self, day: Union[date, str]) -> List[AppointmentRecord]:
        return list(self._cache.get(coerce_date(day), []))

    def get_appointments_for_date(self, day: Union[date, str], refresh: bool = False) -> List[AppointmentRecord]:
        """Appointments on a date from the cache, fetching when not cached or refresh is set."""
        resolved_day = coerce_date(day)
        if refresh or resolved_day not in self._cache:
            return self.refresh_appointments(resolved_day)
        return self.cached_appointments(resolved_day)

    def _remember(self, record: AppointmentRecord, previous: Optional[AppointmentRecord] = None) -> None:
        if previous is not None:
            self._forget(previous.id, previous.date)
        day_records = [r for r in self._cache.get(record.date, []) if r.id != record.id]
        day_records.append(record)
        self._cache[record.date] = day_records

    def _forget(self, appointment_id: str, day: date) -> None:
        if day in self._cache:
            self._cache[day] = [r for r in self._cache[day] if r.id != appointment_id]

    def get_appointment(self, appointment_id: str) -> AppointmentRecord:
        """
        Raises:
            AppointmentNotFoundError: If no appointment has this id
        """
        record = self.store.get_appointment(appointment_id)
        if record is None:
            raise AppointmentNotFoundError(appointment_id)
        return record

    def available_slots(
        self,
        day: Union[date, str],
        employee_id: str,
        duration_minutes: Optional[int] = DEFAULT_APPOINTMENT_DURATION_MINUTES,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[str]:
        """Bookable "HH:MM" starts for the booking form, computed against the local view."""
        return AvailabilityService.compute_available_slots(
            self.resolver,
            day,
            employee_id,
            duration_minutes,
            self.get_appointments_for_date(day),
            exclude_appointment_id=exclude_appointment_id,
            slot_granularity_minutes=self.slot_granularity_minutes,
        )

    # ===== Validation =====

    @staticmethod
    def validate_required_fields(data: Dict[str, Any]) -> None:
        """
        Check that client name, phone, duration, employee, date and time are present.

        Raises:
            MissingRequiredFieldError: Listing every missing field
        """
        missing = []
        for field_name in REQUIRED_APPOINTMENT_FIELDS:
            value = data.get(field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(field_name)
        if missing:
            raise MissingRequiredFieldError(missing)

    @staticmethod
    def validate_duration(duration: Any) -> int:
        """
        Validate an appointment duration in minutes.

        Accepts the preset options and any custom value between
        MIN_CUSTOM_DURATION_MINUTES and MAX_CUSTOM_DURATION_MINUTES.

        Raises:
            MissingRequiredFieldError: If the duration is not a whole number in range
        """
        if isinstance(duration, str) and duration.strip().isdigit():
            duration = int(duration.strip())
        if isinstance(duration, bool) or not isinstance(duration, int):
            raise MissingRequiredFieldError(["duration"], f"Invalid duration: {duration!r}")
        if duration in APPOINTMENT_DURATION_OPTIONS:
            return duration
        if not MIN_CUSTOM_DURATION_MINUTES <= duration <= MAX_CUSTOM_DURATION_MINUTES:
            raise MissingRequiredFieldError(
                ["duration"],
                f"Duration must be between {MIN_CUSTOM_DURATION_MINUTES} and "
                f"{MAX_CUSTOM_DURATION_MINUTES} minutes, got {duration}",
            )
        return duration

    def _build_record(
        self,
        data: Dict[str, Any],
        appointment_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> AppointmentRecord:
        """
        Build an AppointmentRecord from form data, generating an id when none is given.

        Raises:
            MissingRequiredFieldError: If a required field is missing or malformed
        """
        self.validate_required_fields(data)
        duration = self.validate_duration(data["duration"])
        try:
            day = coerce_date(data["date"])
        except ValueError:
            raise MissingRequiredFieldError(["date"], f"Invalid date: {data['date']!r}")
        try:
            start_minutes = parse_time_string(str(data["time"]))
        except ValueError:
            raise MissingRequiredFieldError(["time"], f"Invalid time: {data['time']!r}")

        now = salon_now()
        employee = str(data["employee"])
        return AppointmentRecord(
            id=appointment_id or generate_appointment_id(day, employee, start_minutes, now),
            date=day,
            employee=employee,
            start_minutes=start_minutes,
            duration=duration,
            client=str(data["client"]).strip(),
            phone=str(data["phone"]).strip(),
            description=data.get("description") or "",
            price=data.get("price"),
            payment_type=data.get("payment_type"),
            status=data.get("status"),
            starred=bool(data.get("starred", False)),
            display_employee=data.get("display_employee"),
            created_at=created_at or now,
        )

    def _validate_placement(self, record: AppointmentRecord, exclude_ids: Set[str]) -> None:
        """
        Authoritative save-time check of where an appointment sits.

        The slot must lie inside one working range of the employee and must
        not overlap any other appointment of the same employee and date in a
        freshly fetched copy of the day. A conflict that was already visible
        in the local view (or with no local view of the date) is a
        SlotConflictError; one that only shows up in the fresh copy is a
        StaleDataConflictError.

        Raises:
            OutsideWorkingHoursError: If the slot is outside working hours
            SlotConflictError: If the slot overlaps an appointment in the local view
            StaleDataConflictError: If the slot overlaps an appointment only the fresh data shows
        """
        start, end = record.start_minutes, record.end_minutes
        ranges = self.resolver.resolve_schedule(record.employee, record.date)
        if not AvailabilityService.is_slot_within_working_ranges(ranges, start, end):
            raise OutsideWorkingHoursError(
                f"{record.employee} is not working {format_minutes(start)}-{format_minutes(end)} on {record.date_key}"
            )

        had_local_view = record.date in self._cache
        known_ids = {r.id for r in self.cached_appointments(record.date)}
        fresh = AvailabilityService.appointments_for_employee(
            self.refresh_appointments(record.date), record.employee, record.date, exclude_ids
        )
        conflict = AvailabilityService.find_conflicting_appointment(fresh, start, end)
        if conflict is None:
            return

        message = (
            f"{format_minutes(start)}-{format_minutes(end)} overlaps appointment {conflict.id} "
            f"({conflict.time}, {conflict.duration} min)"
        )
        if conflict.id in known_ids or not had_local_view:
            raise SlotConflictError(message, conflict.id)
        raise StaleDataConflictError(message, conflict.id)

    def _explain_placement_failure(self, candidate: AppointmentRecord, exclude_ids: Set[str]) -> None:
        """Raise the rejection matching a failed can_place check against the local view."""
        start, end = candidate.start_minutes, candidate.end_minutes
        ranges = self.resolver.resolve_schedule(candidate.employee, candidate.date)
        if not AvailabilityService.is_slot_within_working_ranges(ranges, start, end):
            raise OutsideWorkingHoursError(
                f"{candidate.employee} is not working {format_minutes(start)}-{format_minutes(end)} "
                f"on {candidate.date_key}"
            )
        others = AvailabilityService.appointments_for_employee(
            self.cached_appointments(candidate.date), candidate.employee, candidate.date, exclude_ids
        )
        conflict = AvailabilityService.find_conflicting_appointment(others, start, end)
        raise SlotConflictError(
            f"Cannot place {candidate.id} at {format_minutes(start)} for {candidate.employee}",
            conflict.id if conflict else None,
        )

    # ===== Lifecycle =====

    def _persist(self, record: AppointmentRecord, previous: Optional[AppointmentRecord] = None) -> AppointmentRecord:
        saved = self.store.save_appointment(record)
        self._remember(saved, previous)
        self._touch_customer(saved)
        return saved

    def _touch_customer(self, record: AppointmentRecord) -> None:
        """Upsert the appointment's client into the customer directory."""
        if self.db is None or not record.phone:
            return
        try:
            CustomerService.upsert_customer(
                self.db, record.phone, name=record.client, last_appointment_at=salon_now()
            )
        except (ValueError, SQLAlchemyError) as e:
            # The appointment is already stored; the directory entry is best-effort
            logger.warning(f"Could not update customer for appointment {record.id}: {e}")

    def create_appointment(self, data: Dict[str, Any]) -> SaveResult:
        """
        Create an appointment.

        Args:
            data: Appointment fields in the external record shape
                ("client", "phone", "date", "employee", "time", "duration", ...)

        Returns:
            SaveResult with the new appointment id, or the rejection
        """
        try:
            record = self._build_record(data)
            self._validate_placement(record, set())
        except SchedulingError as e:
            logger.info(
                f"Rejected new appointment for {data.get('employee')} on {data.get('date')} "
                f"at {data.get('time')}: {e.reason} - {e.message}"
            )
            return SaveResult.rejected(e.to_rejection())

        saved = self._persist(record)
        logger.info(f"Created appointment {saved.id}")
        return SaveResult.ok(saved.id)

    def update_appointment(self, appointment_id: str, changes: Dict[str, Any]) -> SaveResult:
        """
        Edit an appointment.

        Placement is re-validated only when date, employee, time or duration
        changed; edits to other fields (price, notes, status) are saved directly.

        Args:
            appointment_id: Appointment to edit
            changes: Fields to change, in the external record shape

        Returns:
            SaveResult with the appointment id, or the rejection

        Raises:
            AppointmentNotFoundError: If the appointment does not exist
        """
        existing = self.get_appointment(appointment_id)
        merged = existing.to_dict()
        merged.update(changes)

        try:
            record = self._build_record(merged, appointment_id=existing.id, created_at=existing.created_at)
            scheduling_changed = (
                record.date != existing.date
                or record.employee != existing.employee
                or record.start_minutes != existing.start_minutes
                or record.duration != existing.duration
            )
            if scheduling_changed:
                self._validate_placement(record, {existing.id})
        except SchedulingError as e:
            logger.info(f"Rejected edit of appointment {appointment_id}: {e.reason} - {e.message}")
            return SaveResult.rejected(e.to_rejection())

        saved = self._persist(record, previous=existing)
        logger.info(f"Updated appointment {saved.id}")
        return SaveResult.ok(saved.id)

    def move_appointment(
        self,
        appointment: AppointmentRecord,
        new_employee: str,
        new_time: Union[int, str],
    ) -> SaveResult:
        """
        Move an appointment to another employee column and/or start time.

        The move is judged against the stored record. When the stored
        employee, date, time and duration already match the target, only
        metadata changed and the record is saved without placement checks.
        Otherwise the target must pass can_place against the local view and
        then the save-time re-validation; a rejected move changes nothing.

        Args:
            appointment: The appointment, possibly with edited metadata
            new_employee: Target employee
            new_time: Target start as "HH:MM" or minutes since midnight

        Returns:
            SaveResult with the appointment id, or the rejection

        Raises:
            AppointmentNotFoundError: If the appointment does not exist
        """
        try:
            new_start = new_time if isinstance(new_time, int) else parse_time_string(new_time)
        except ValueError:
            error = MissingRequiredFieldError(["time"], f"Invalid time: {new_time!r}")
            return SaveResult.rejected(error.to_rejection())

        stored = self.get_appointment(appointment.id)
        candidate = dataclasses.replace(
            appointment, employee=new_employee, start_minutes=new_start, created_at=stored.created_at
        )
        unchanged = (
            stored.employee == new_employee
            and stored.start_minutes == new_start
            and stored.date == candidate.date
            and stored.duration == candidate.duration
        )
        exclude_ids = {stored.id}
        try:
            self.validate_required_fields(candidate.to_dict())
            if not unchanged:
                self.validate_duration(candidate.duration)
                placeable = AvailabilityService.can_place(
                    self.resolver,
                    candidate,
                    new_employee,
                    new_start,
                    self.get_appointments_for_date(candidate.date),
                    exclude_appointment_ids=exclude_ids,
                    slot_granularity_minutes=self.slot_granularity_minutes,
                )
                if not placeable:
                    self._explain_placement_failure(candidate, exclude_ids)
                self._validate_placement(candidate, exclude_ids)
        except SchedulingError as e:
            logger.info(
                f"Rejected move of {stored.id} to {new_employee} at {format_minutes(new_start)}: "
                f"{e.reason} - {e.message}"
            )
            return SaveResult.rejected(e.to_rejection())

        saved = self._persist(candidate, previous=stored)
        if unchanged:
            logger.info(f"Saved appointment {saved.id} in place")
        else:
            logger.info(f"Moved appointment {saved.id} to {new_employee} at {saved.time}")
        return SaveResult.ok(saved.id)

    def delete_appointment(self, appointment_id: str) -> bool:
        """
        Delete an appointment.

        Returns:
            True if an appointment was deleted
        """
        existing = self.store.get_appointment(appointment_id)
        deleted = self.store.delete_appointment(appointment_id)
        if existing is not None:
            self._forget(appointment_id, existing.date)
        if deleted:
            logger.info(f"Deleted appointment {appointment_id}")
        return deleted

    def find_appointments_before(self, cutoff: Optional[Union[date, str]] = None) -> List[AppointmentRecord]:
        """Appointments dated strictly before cutoff (default: today)."""
        cutoff_day = coerce_date(cutoff) if cutoff else salon_now().date()
        return self.store.find_appointments_before(cutoff_day)

    def purge_appointments_before(
        self,
        cutoff: Optional[Union[date, str]] = None,
        dry_run: bool = True,
    ) -> int:
        """
        Delete appointments dated strictly before cutoff.

        Args:
            cutoff: First date to keep; defaults to today
            dry_run: Only count the matching appointments

        Returns:
            Number of matching appointments (dry run) or deleted appointments
        """
        matched = self.find_appointments_before(cutoff)
        if dry_run:
            logger.info(f"Dry run: {len(matched)} appointments before {cutoff or 'today'} would be deleted")
            return len(matched)

        deleted = 0
        for record in matched:
            if self.store.delete_appointment(record.id):
                self._forget(record.id, record.date)
                deleted += 1
        logger.info(f"Purged {deleted} appointments before {cutoff or 'today'}")
        return deleted
