# Package initialization
# Import all models so they're registered on Base.metadata
from .employee import Employee, WeeklySchedule
from .schedule_exception import EmployeeScheduleChange, EmployeeScheduleOverride
from .appointment import Appointment
from .customer import Customer
from .waitlist_entry import WaitlistEntry

__all__ = [
    "Employee",
    "WeeklySchedule",
    "EmployeeScheduleChange",
    "EmployeeScheduleOverride",
    "Appointment",
    "Customer",
    "WaitlistEntry",
]
