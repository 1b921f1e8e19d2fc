"""Application constants and seeded schedule tables."""

# Database field lengths
MAX_STRING_LENGTH = 255
MAX_ID_LENGTH = 128  # Appointment ids embed date, employee, time and epoch millis

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# Time-of-day arithmetic
MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * 60

# Business hours per weekday (0=Sunday ... 6=Saturday), whole hours. None means closed.
# Sunday and Monday closed, Tue/Wed/Thu 10-21, Fri 9-21, Sat 9-15
BUSINESS_HOURS = {
    0: None,
    1: None,
    2: {"start": 10, "end": 21},
    3: {"start": 10, "end": 21},
    4: {"start": 10, "end": 21},
    5: {"start": 9, "end": 21},
    6: {"start": 9, "end": 15},
}

# Appointment durations offered by the booking form (minutes)
APPOINTMENT_DURATION_OPTIONS = [30, 45, 60, 90, 120]
MIN_CUSTOM_DURATION_MINUTES = 5
MAX_CUSTOM_DURATION_MINUTES = 480  # 8 hours

# Fields that must be present before an appointment can be saved
REQUIRED_APPOINTMENT_FIELDS = ["client", "phone", "duration", "employee", "date", "time"]

# Rejection reasons reported to callers
REJECTION_SLOT_CONFLICT = "SLOT_CONFLICT"
REJECTION_OUTSIDE_HOURS = "OUTSIDE_HOURS"
REJECTION_MISSING_FIELD = "MISSING_FIELD"

# Customer / waitlist search
DEFAULT_SEARCH_LIMIT = 10

# Default weekly schedules per employee (0=Sunday ... 6=Saturday).
# A missing weekday means the employee does not work that day.
DEFAULT_EMPLOYEE_SCHEDULES = {
    "aggelikh": {
        "name": "Aggelikh",
        "schedule": {
            2: [["10:00", "16:00"], ["19:00", "21:00"]],
            3: [["13:00", "21:00"]],
            4: [["10:00", "16:00"], ["19:00", "21:00"]],
            5: [["13:00", "21:00"]],
        },
    },
    "emmanouela": {
        "name": "Emmanouela",
        "schedule": {
            2: [["13:00", "21:00"]],
            3: [["13:00", "21:00"]],
            4: [["13:00", "21:00"]],
            5: [["09:00", "17:00"]],
            6: [["09:00", "15:00"]],
        },
    },
    "hliana": {
        "name": "Hliana",
        "schedule": {
            2: [["13:00", "21:00"]],
            3: [["10:00", "18:00"]],
            4: [["13:00", "21:00"]],
            5: [["13:00", "21:00"]],
            6: [["09:00", "15:00"]],
        },
    },
    "kelly": {
        "name": "Kelly",
        "schedule": {
            3: [["17:00", "21:00"]],
            4: [["17:00", "21:00"]],
            5: [["17:00", "21:00"]],
            6: [["10:00", "15:00"]],
        },
    },
}

# Dated schedule regime changes. Each entry applies from its effective date
# until a later entry for the same employee supersedes it.
EMPLOYEE_SCHEDULE_HISTORY = {
    "emmanouela": [
        {
            "effective": "2025-09-06",
            "ranges": {
                2: None,
                3: [["16:00", "21:00"]],
                4: [["13:00", "21:00"]],
                5: [["09:00", "14:00"]],
                6: None,
            },
        },
    ],
}

# One-off per-date overrides. None means the employee is off that date.
SCHEDULE_OVERRIDES = {
    "2025-09-23": {"emmanouela": {2: [["16:00", "21:00"]]}},
    "2025-09-25": {"emmanouela": None},
    "2025-09-26": {"emmanouela": None},
    "2025-09-27": {"emmanouela": None},
    "2025-09-28": {"emmanouela": None},
    "2025-09-29": {"emmanouela": None},
    "2025-09-30": {"emmanouela": None},
}
