"""
Application configuration using python-dotenv.

This module loads environment variables from .env file into os.environ
for use throughout the scheduling core.
"""

import os
import pathlib
from dotenv import load_dotenv


# Determine if we're running in a test environment
# Don't load .env file during testing to ensure predictable test behavior
is_testing = os.getenv("PYTEST_VERSION") is not None

# Load .env file into os.environ (only outside of testing)
if not is_testing:
    possible_paths = [
        pathlib.Path(__file__).parent.parent.parent.parent / ".env",  # repo root (src layout)
        pathlib.Path.cwd() / ".env",  # .env in current directory
        pathlib.Path.cwd().parent / ".env",  # .env in parent directory
    ]

    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def get_database_url() -> str:
    """Get the database URL from environment."""
    return os.getenv(
        "DATABASE_URL",
        "sqlite:///salon_calendar.db"
    )

DATABASE_URL = get_database_url()

# Scheduling
SLOT_GRANULARITY_MINUTES = int(os.getenv("SLOT_GRANULARITY_MINUTES", "15"))
DEFAULT_APPOINTMENT_DURATION_MINUTES = int(os.getenv("DEFAULT_APPOINTMENT_DURATION_MINUTES", "30"))

# Save-time re-fetch of the day's appointments
REFETCH_MAX_ATTEMPTS = int(os.getenv("REFETCH_MAX_ATTEMPTS", "3"))
REFETCH_BASE_DELAY_SECONDS = float(os.getenv("REFETCH_BASE_DELAY_SECONDS", "0.2"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Timezone used for "today" and record timestamps
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Europe/Athens")
