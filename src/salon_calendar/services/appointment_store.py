"""
Appointment persistence collaborators.

AppointmentService talks to storage only through the AppointmentStore
protocol. Two implementations are provided: an in-memory store (tests,
embedding in a single process) and a SQLAlchemy-backed store.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Protocol

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from salon_calendar.core.exceptions import TransientFetchError
from salon_calendar.models import Appointment
from salon_calendar.shared_types.scheduling import AppointmentRecord

logger = logging.getLogger(__name__)


class AppointmentStore(Protocol):
    """Durable read/write of appointments. Not transactional across calls."""

    def fetch_appointments(self, day: date) -> List[AppointmentRecord]:
        """
        All appointments on a date.

        Raises:
            TransientFetchError: If the backing store is temporarily unreachable
        """
        ...

    def get_appointment(self, appointment_id: str) -> Optional[AppointmentRecord]:
        ...

    def save_appointment(self, record: AppointmentRecord) -> AppointmentRecord:
        """Insert or replace the appointment with record.id."""
        ...

    def delete_appointment(self, appointment_id: str) -> bool:
        """Delete an appointment; False if it did not exist."""
        ...

    def find_appointments_before(self, cutoff: date) -> List[AppointmentRecord]:
        ...


class InMemoryAppointmentStore:
    """AppointmentStore keeping records in a dict keyed by id."""

    def __init__(self, records: Optional[List[AppointmentRecord]] = None):
        self._records: Dict[str, AppointmentRecord] = {}
        for record in records or []:
            self._records[record.id] = record

    def fetch_appointments(self, day: date) -> List[AppointmentRecord]:
        return sorted(
            (record for record in self._records.values() if record.date == day),
            key=lambda record: (record.employee, record.start_minutes),
        )

    def get_appointment(self, appointment_id: str) -> Optional[AppointmentRecord]:
        return self._records.get(appointment_id)

    def save_appointment(self, record: AppointmentRecord) -> AppointmentRecord:
        self._records[record.id] = record
        return record

    def delete_appointment(self, appointment_id: str) -> bool:
        return self._records.pop(appointment_id, None) is not None

    def find_appointments_before(self, cutoff: date) -> List[AppointmentRecord]:
        return sorted(
            (record for record in self._records.values() if record.date < cutoff),
            key=lambda record: (record.date, record.start_minutes),
        )


class SqlAlchemyAppointmentStore:
    """AppointmentStore backed by the appointments table."""

    def __init__(self, db: Session):
        self.db = db

    def fetch_appointments(self, day: date) -> List[AppointmentRecord]:
        try:
            rows = self.db.query(Appointment).filter(
                Appointment.date == day
            ).order_by(Appointment.employee_id, Appointment.start_time).all()
        except OperationalError as e:
            self.db.rollback()
            raise TransientFetchError(f"Failed to fetch appointments for {day}: {e}") from e
        return [row.to_record() for row in rows]

    def get_appointment(self, appointment_id: str) -> Optional[AppointmentRecord]:
        row = self.db.get(Appointment, appointment_id)
        return row.to_record() if row else None

    def save_appointment(self, record: AppointmentRecord) -> AppointmentRecord:
        try:
            row = self.db.get(Appointment, record.id)
            if row is None:
                row = Appointment.from_record(record)
                self.db.add(row)
            else:
                row.apply_record(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to save appointment {record.id}: {e}")
            raise
        self.db.refresh(row)
        return row.to_record()

    def delete_appointment(self, appointment_id: str) -> bool:
        row = self.db.get(Appointment, appointment_id)
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to delete appointment {appointment_id}: {e}")
            raise
        return True

    def find_appointments_before(self, cutoff: date) -> List[AppointmentRecord]:
        rows = self.db.query(Appointment).filter(
            Appointment.date < cutoff
        ).order_by(Appointment.date, Appointment.start_time).all()
        return [row.to_record() for row in rows]
