"""
Waitlist service.

Keeps, per date, the clients waiting for a free slot, in the order they were
added. Adding an entry also records the client in the customer directory.
"""

import logging
from datetime import date
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_calendar.core.exceptions import MissingRequiredFieldError
from salon_calendar.core.sentinels import MISSING, MissingType
from salon_calendar.models import WaitlistEntry
from salon_calendar.services.customer_service import CustomerService
from salon_calendar.utils.datetime_utils import coerce_date, salon_now
from salon_calendar.utils.phone_validator import phone_to_key

logger = logging.getLogger(__name__)


class WaitlistService:
    """Service class for waitlist operations."""

    @staticmethod
    def add_waiting(
        db: Session,
        waiting_date: Union[date, str],
        name: str,
        phone: str,
        prefs: str = "",
    ) -> WaitlistEntry:
        """
        Add a client to a date's waitlist.

        Args:
            db: Database session
            waiting_date: Date the client wants, date or "YYYY-MM-DD"
            name: Client name
            phone: Client phone number
            prefs: Free-text preferences

        Returns:
            The created WaitlistEntry

        Raises:
            MissingRequiredFieldError: If name or phone is empty
            ValueError: If the date cannot be parsed
        """
        missing = [field_name for field_name, value in (("name", name), ("phone", phone)) if not (value or "").strip()]
        if missing:
            raise MissingRequiredFieldError(missing)

        entry = WaitlistEntry(
            waiting_date=coerce_date(waiting_date),
            name=name.strip(),
            phone=phone.strip(),
            prefs=prefs or "",
            created_at=salon_now(),
        )
        db.add(entry)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to add waitlist entry for {entry.waiting_date}: {e}")
            raise
        logger.info(f"Added waitlist entry {entry.id} for {entry.waiting_date}")

        if phone_to_key(phone):
            try:
                CustomerService.upsert_customer(db, phone, name=name)
            except SQLAlchemyError as e:
                # The waitlist entry is already stored; the directory entry is best-effort
                logger.warning(f"Could not update customer for waitlist entry {entry.id}: {e}")

        return entry

    @staticmethod
    def get_waiting_for_date(db: Session, waiting_date: Union[date, str]) -> List[WaitlistEntry]:
        """Entries for a date, oldest first."""
        return db.query(WaitlistEntry).filter(
            WaitlistEntry.waiting_date == coerce_date(waiting_date)
        ).order_by(WaitlistEntry.created_at, WaitlistEntry.id).all()

    @staticmethod
    def get_waiting_by_id(db: Session, entry_id: int) -> Optional[WaitlistEntry]:
        return db.get(WaitlistEntry, entry_id)

    @staticmethod
    def update_waiting(
        db: Session,
        entry_id: int,
        waiting_date: Union[date, str, MissingType] = MISSING,
        name: Union[str, MissingType] = MISSING,
        phone: Union[str, MissingType] = MISSING,
        prefs: Union[str, MissingType] = MISSING,
    ) -> Optional[WaitlistEntry]:
        """
        Update fields of a waitlist entry. Arguments left as MISSING are unchanged.

        Returns:
            The updated entry, or None if it does not exist
        """
        entry = db.get(WaitlistEntry, entry_id)
        if entry is None:
            return None

        if waiting_date is not MISSING:
            entry.waiting_date = coerce_date(waiting_date)
        if name is not MISSING:
            entry.name = (name or "").strip()
        if phone is not MISSING:
            entry.phone = (phone or "").strip()
        if prefs is not MISSING:
            entry.prefs = prefs or ""

        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to update waitlist entry {entry_id}: {e}")
            raise
        return entry

    @staticmethod
    def remove_waiting(db: Session, entry_id: int) -> bool:
        """
        Remove a waitlist entry.

        Returns:
            True if an entry was removed
        """
        entry = db.get(WaitlistEntry, entry_id)
        if entry is None:
            return False
        db.delete(entry)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to remove waitlist entry {entry_id}: {e}")
            raise
        logger.info(f"Removed waitlist entry {entry_id}")
        return True
