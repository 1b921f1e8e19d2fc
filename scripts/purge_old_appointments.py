"""
Purge appointments dated before a cutoff.

Dry run by default; pass --run to delete.

    python scripts/purge_old_appointments.py --date 2025-01-01
    python scripts/purge_old_appointments.py --date 2025-01-01 --run
"""
import argparse
import logging
import sys

from salon_calendar.core.database import get_db_context
from salon_calendar.core.logging_config import setup_logging
from salon_calendar.services import AppointmentService, SqlAlchemyAppointmentStore, ScheduleRepository, ScheduleResolver

logger = logging.getLogger(__name__)


def purge(cutoff, run):
    with get_db_context() as db:
        service = AppointmentService(
            SqlAlchemyAppointmentStore(db),
            ScheduleResolver(ScheduleRepository.from_database(db)),
        )
        matched = service.find_appointments_before(cutoff)
        print(f"Found {len(matched)} appointments with date < {cutoff or '(today)'}")
        for record in matched[:50]:
            print(f"  {record.date_key} {record.time} {record.employee:<12} {record.client}")

        if not run:
            print("\nDry-run mode. To delete these appointments run:")
            print(f"python scripts/purge_old_appointments.py --date {cutoff or ''} --run")
            return 0

        deleted = service.purge_appointments_before(cutoff, dry_run=False)
        print(f"Deleted {deleted} appointments")
        return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Purge appointments dated before a cutoff.")
    parser.add_argument("--date", default=None, help="Cutoff date YYYY-MM-DD (default: today)")
    parser.add_argument("--run", action="store_true", help="Actually delete (default is a dry run)")
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL from config)")

    args = parser.parse_args()
    setup_logging(args.log_level)
    try:
        sys.exit(purge(args.date, args.run))
    except Exception as e:
        logger.exception(f"Purge failed: {e}")
        sys.exit(2)
