"""
Business hours service.

The shop's opening hours are a static weekday table. A date is bookable only
if the shop is open that weekday and at least one employee actually works
that date.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple, Union

from salon_calendar.core.constants import BUSINESS_HOURS
from salon_calendar.services.schedule_service import ScheduleResolver
from salon_calendar.utils.datetime_utils import coerce_date, sunday_based_weekday

logger = logging.getLogger(__name__)


class BusinessHoursService:
    """Opening-hours checks and the hourly grid shown on the day calendar."""

    @staticmethod
    def get_business_hours(
        day: Union[date, str],
        business_hours: Optional[Dict[int, Optional[Dict[str, int]]]] = None,
    ) -> Optional[Tuple[int, int]]:
        """
        Get opening hours for a date.

        Args:
            day: Date or "YYYY-MM-DD" string
            business_hours: Weekday table to use instead of BUSINESS_HOURS

        Returns:
            (start_hour, end_hour), or None when closed or the date is malformed
        """
        table = BUSINESS_HOURS if business_hours is None else business_hours
        try:
            resolved_day = coerce_date(day)
        except ValueError:
            return None
        config = table.get(sunday_based_weekday(resolved_day))
        if not config:
            return None
        return config["start"], config["end"]

    @staticmethod
    def is_open(day: Union[date, str]) -> bool:
        return BusinessHoursService.get_business_hours(day) is not None

    @staticmethod
    def generate_hours_for_date(day: Union[date, str]) -> List[str]:
        """
        Generate the hourly grid rows for a date.

        Returns:
            "HH:00" for every hour from opening to closing, inclusive; empty when closed
        """
        hours = BusinessHoursService.get_business_hours(day)
        if hours is None:
            return []
        start, end = hours
        return [f"{hour:02d}:00" for hour in range(start, end + 1)]

    @staticmethod
    def working_employees(
        day: Union[date, str],
        employee_ids: Iterable[str],
        resolver: ScheduleResolver,
    ) -> List[str]:
        """Employees with at least one working range on the date, in input order."""
        return [employee_id for employee_id in employee_ids if resolver.is_working(employee_id, day)]

    @staticmethod
    def is_bookable_date(
        day: Union[date, str],
        employee_ids: Iterable[str],
        resolver: ScheduleResolver,
    ) -> bool:
        """
        Check whether any appointment can be booked on a date.

        Args:
            day: Date or "YYYY-MM-DD" string
            employee_ids: Employees to consider
            resolver: Schedule resolver for the employees' working ranges

        Returns:
            True if the shop is open and some employee works that date
        """
        if not BusinessHoursService.is_open(day):
            return False
        working = BusinessHoursService.working_employees(day, employee_ids, resolver)
        if not working:
            logger.debug(f"Shop open on {day} but no employee is working")
        return bool(working)
