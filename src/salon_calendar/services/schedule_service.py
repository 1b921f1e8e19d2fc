"""
Employee schedule resolution.

Working hours for an employee on a date come from three sources, in order of
precedence:

1. a per-date override (may mark the employee off for that date),
2. the latest dated schedule change effective on or before the date,
3. the employee's default weekly schedule.

The sources live in a ScheduleRepository. ScheduleResolver tries an ordered
list of providers over that repository; each provider returns the ranges it
knows about or None, and the first non-None answer wins.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from sqlalchemy.orm import Session

from salon_calendar.core.constants import (
    DEFAULT_EMPLOYEE_SCHEDULES,
    EMPLOYEE_SCHEDULE_HISTORY,
    SCHEDULE_OVERRIDES,
)
from salon_calendar.core.sentinels import MISSING, MissingType
from salon_calendar.models import Employee, EmployeeScheduleChange, EmployeeScheduleOverride
from salon_calendar.models.employee import WeeklySchedule, parse_day_ranges
from salon_calendar.shared_types.scheduling import TimeRange
from salon_calendar.utils.datetime_utils import coerce_date, sunday_based_weekday

logger = logging.getLogger(__name__)

RangesByWeekday = Dict[int, Optional[List[TimeRange]]]


@dataclass
class ScheduleHistoryEntry:
    """A schedule regime effective from effective_date until superseded."""
    effective_date: date
    ranges_by_weekday: RangesByWeekday = field(default_factory=dict)


def parse_ranges_by_weekday(raw: Optional[Dict[Any, Any]]) -> RangesByWeekday:
    """
    Parse a {weekday: [[HH:MM, HH:MM], ...] | None} mapping.

    Raises:
        pydantic.ValidationError: If a weekday key or range is invalid
    """
    return WeeklySchedule.from_raw(raw).days


class ScheduleRepository:
    """
    Holds default schedules, dated schedule history and per-date overrides.

    Pass one into ScheduleResolver instead of relying on module-level tables,
    so tests and other tenants can use their own data.
    """

    def __init__(
        self,
        default_schedules: Optional[Dict[str, RangesByWeekday]] = None,
        history: Optional[Dict[str, List[ScheduleHistoryEntry]]] = None,
        overrides: Optional[Dict[date, Dict[str, Optional[RangesByWeekday]]]] = None,
        employee_names: Optional[Dict[str, str]] = None,
    ):
        self._default_schedules: Dict[str, RangesByWeekday] = dict(default_schedules or {})
        self._history: Dict[str, List[ScheduleHistoryEntry]] = {
            employee_id: list(entries) for employee_id, entries in (history or {}).items()
        }
        self._overrides: Dict[date, Dict[str, Optional[RangesByWeekday]]] = {
            day: dict(by_employee) for day, by_employee in (overrides or {}).items()
        }
        self._employee_names: Dict[str, str] = dict(employee_names or {})

    def employee_ids(self) -> List[str]:
        """Employees with a default schedule, in insertion order."""
        return list(self._default_schedules)

    def employee_name(self, employee_id: str) -> str:
        return self._employee_names.get(employee_id, employee_id)

    def get_default_schedule(self, employee_id: str) -> Optional[RangesByWeekday]:
        return self._default_schedules.get(employee_id)

    def set_default_schedule(self, employee_id: str, schedule: RangesByWeekday, name: Optional[str] = None) -> None:
        self._default_schedules[employee_id] = dict(schedule)
        if name:
            self._employee_names[employee_id] = name

    def get_history(self, employee_id: str) -> List[ScheduleHistoryEntry]:
        return list(self._history.get(employee_id, []))

    def add_history_entry(self, employee_id: str, entry: ScheduleHistoryEntry) -> None:
        """Append a history entry; later entries win ties on effective_date."""
        self._history.setdefault(employee_id, []).append(entry)

    def get_override(self, day: date, employee_id: str) -> Union[Optional[RangesByWeekday], MissingType]:
        """
        Get the override for an employee on a date.

        Returns:
            MISSING when no override exists, None when the employee is off
            that date, otherwise the weekday -> ranges mapping
        """
        by_employee = self._overrides.get(day)
        if by_employee is None or employee_id not in by_employee:
            return MISSING
        return by_employee[employee_id]

    def set_override(self, day: date, employee_id: str, ranges_by_weekday: Optional[RangesByWeekday]) -> None:
        self._overrides.setdefault(day, {})[employee_id] = ranges_by_weekday

    def remove_override(self, day: date, employee_id: str) -> None:
        by_employee = self._overrides.get(day)
        if by_employee is not None:
            by_employee.pop(employee_id, None)
            if not by_employee:
                del self._overrides[day]

    @classmethod
    def from_dict(
        cls,
        employees: Iterable[Dict[str, Any]],
        history: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        overrides: Optional[Dict[str, Dict[str, Optional[Dict[Any, Any]]]]] = None,
    ) -> "ScheduleRepository":
        """
        Build a repository from the external record shapes.

        Args:
            employees: [{"id", "name", "schedule": {weekday: [[HH:MM, HH:MM], ...]}}]
            history: {employee_id: [{"effective": "YYYY-MM-DD", "ranges": {...}}]}
            overrides: {"YYYY-MM-DD": {employee_id: None | {weekday: [...]}}}

        Raises:
            ValueError: If a date, weekday or range is malformed
        """
        repository = cls()
        for employee in employees:
            repository.set_default_schedule(
                employee["id"],
                parse_ranges_by_weekday(employee.get("schedule")),
                name=employee.get("name"),
            )

        for employee_id, entries in (history or {}).items():
            for entry in entries:
                repository.add_history_entry(
                    employee_id,
                    ScheduleHistoryEntry(
                        effective_date=coerce_date(entry["effective"]),
                        ranges_by_weekday=parse_ranges_by_weekday(entry.get("ranges")),
                    ),
                )

        for day_str, by_employee in (overrides or {}).items():
            day = coerce_date(day_str)
            for employee_id, raw_ranges in by_employee.items():
                repository.set_override(
                    day,
                    employee_id,
                    None if raw_ranges is None else parse_ranges_by_weekday(raw_ranges),
                )

        return repository

    @classmethod
    def from_database(cls, db: Session) -> "ScheduleRepository":
        """
        Build a repository from active Employee rows and their schedule changes and overrides.

        Args:
            db: Database session

        Raises:
            pydantic.ValidationError: If stored schedule JSON is malformed
        """
        repository = cls()
        employees = db.query(Employee).filter(Employee.is_active == True).order_by(Employee.id).all()  # noqa: E712
        active_ids = {employee.id for employee in employees}
        for employee in employees:
            repository.set_default_schedule(
                employee.id, employee.get_validated_schedule().days, name=employee.name
            )

        changes = db.query(EmployeeScheduleChange).filter(
            EmployeeScheduleChange.employee_id.in_(active_ids)
        ).order_by(EmployeeScheduleChange.id).all()
        for change in changes:
            repository.add_history_entry(
                change.employee_id,
                ScheduleHistoryEntry(
                    effective_date=change.effective_date,
                    ranges_by_weekday=parse_ranges_by_weekday(change.ranges),
                ),
            )

        overrides = db.query(EmployeeScheduleOverride).filter(
            EmployeeScheduleOverride.employee_id.in_(active_ids)
        ).all()
        for override in overrides:
            repository.set_override(
                override.override_date,
                override.employee_id,
                None if override.is_day_off else parse_ranges_by_weekday(override.ranges),
            )

        logger.debug(
            f"Loaded schedules for {len(employees)} employees, "
            f"{len(changes)} schedule changes, {len(overrides)} overrides"
        )
        return repository


def build_default_repository() -> ScheduleRepository:
    """Repository seeded with the salon's current schedule tables."""
    return ScheduleRepository.from_dict(
        [
            {"id": employee_id, "name": data["name"], "schedule": data["schedule"]}
            for employee_id, data in DEFAULT_EMPLOYEE_SCHEDULES.items()
        ],
        history=EMPLOYEE_SCHEDULE_HISTORY,
        overrides=SCHEDULE_OVERRIDES,
    )


class ScheduleProvider(Protocol):
    """A source of working ranges; returns None when it has no say for the date."""

    def ranges_for(self, employee_id: str, day: date) -> Optional[List[TimeRange]]:
        ...


class OverrideScheduleProvider:
    """Per-date overrides. An override of None means the employee is off."""

    def __init__(self, repository: ScheduleRepository):
        self.repository = repository

    def ranges_for(self, employee_id: str, day: date) -> Optional[List[TimeRange]]:
        override = self.repository.get_override(day, employee_id)
        if override is MISSING:
            return None
        if override is None:
            return []
        return list(override.get(sunday_based_weekday(day)) or [])


class HistoryScheduleProvider:
    """Latest schedule change effective on or before the date."""

    def __init__(self, repository: ScheduleRepository):
        self.repository = repository

    def ranges_for(self, employee_id: str, day: date) -> Optional[List[TimeRange]]:
        selected: Optional[ScheduleHistoryEntry] = None
        for entry in self.repository.get_history(employee_id):
            if entry.effective_date > day:
                continue
            # >= so that a later entry with the same effective date wins
            if selected is None or entry.effective_date >= selected.effective_date:
                selected = entry
        if selected is None:
            return None
        return list(selected.ranges_by_weekday.get(sunday_based_weekday(day)) or [])


class DefaultScheduleProvider:
    """Default weekly schedule; unknown employees resolve to no ranges."""

    def __init__(self, repository: ScheduleRepository):
        self.repository = repository

    def ranges_for(self, employee_id: str, day: date) -> Optional[List[TimeRange]]:
        schedule = self.repository.get_default_schedule(employee_id) or {}
        return list(schedule.get(sunday_based_weekday(day)) or [])


class ScheduleResolver:
    """
    Resolves an employee's working ranges for a calendar date.

    Pure and synchronous: the result depends only on the repository contents.
    """

    def __init__(self, repository: ScheduleRepository, providers: Optional[List[ScheduleProvider]] = None):
        self.repository = repository
        self.providers: List[ScheduleProvider] = providers if providers is not None else [
            OverrideScheduleProvider(repository),
            HistoryScheduleProvider(repository),
            DefaultScheduleProvider(repository),
        ]

    def resolve_schedule(self, employee_id: str, day: Union[date, str]) -> List[TimeRange]:
        """
        Get the working ranges for an employee on a date.

        Args:
            employee_id: Employee id
            day: Date or "YYYY-MM-DD" string

        Returns:
            Ranges sorted ascending by start; empty when the employee is not
            working or the date is malformed
        """
        if not employee_id:
            return []
        try:
            resolved_day = coerce_date(day)
        except ValueError:
            logger.debug(f"Unparseable date {day!r} for employee {employee_id}, treating as not working")
            return []

        for provider in self.providers:
            ranges = provider.ranges_for(employee_id, resolved_day)
            if ranges is not None:
                return sorted(ranges)
        return []

    def resolve_schedule_hhmm(self, employee_id: str, day: Union[date, str]) -> List[List[str]]:
        """Same as resolve_schedule, with ranges as ["HH:MM", "HH:MM"] pairs."""
        return [time_range.to_hhmm() for time_range in self.resolve_schedule(employee_id, day)]

    def is_working(self, employee_id: str, day: Union[date, str]) -> bool:
        return bool(self.resolve_schedule(employee_id, day))


def ranges_from_strings(values: Iterable[str]) -> List[TimeRange]:
    """
    Parse working ranges entered as "HH:MM-HH:MM" strings (employee form input).

    Raises:
        ValueError: If a string is malformed or ranges overlap
    """
    return parse_day_ranges([value for value in values if value and value.strip()])
