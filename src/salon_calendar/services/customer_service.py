"""
Customer directory service.

Customers are upserted whenever an appointment or waitlist entry is saved, so
the booking form can suggest names and numbers for returning clients.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_calendar.core.constants import DEFAULT_SEARCH_LIMIT
from salon_calendar.core.sentinels import MISSING, MissingType
from salon_calendar.models import Customer
from salon_calendar.utils.datetime_utils import salon_now
from salon_calendar.utils.phone_validator import phone_to_key, validate_phone

logger = logging.getLogger(__name__)


class CustomerService:
    """Service class for customer directory operations."""

    @staticmethod
    def upsert_customer(
        db: Session,
        phone: str,
        name: Optional[str] = None,
        notes: Union[str, MissingType] = MISSING,
        last_appointment_at: Optional[datetime] = None,
    ) -> Customer:
        """
        Create or update the customer keyed by the phone number's digits.

        Existing values are kept when name is empty or notes is MISSING.

        Args:
            db: Database session
            phone: Phone number in any format
            name: Customer name
            notes: Free-text notes; MISSING leaves existing notes untouched
            last_appointment_at: Booking time of the latest appointment; defaults to now

        Returns:
            The stored Customer

        Raises:
            ValueError: If the phone number is empty or contains no digits
        """
        phone = validate_phone(phone)
        key = phone_to_key(phone)

        now = salon_now()
        customer = db.get(Customer, key)
        if customer is None:
            customer = Customer(
                id=key,
                phone=phone,
                name=(name or "").strip(),
                notes="" if notes is MISSING else (notes or ""),
                last_appointment_at=last_appointment_at or now,
                created_at=now,
                updated_at=now,
            )
            db.add(customer)
            logger.info(f"Created customer {key}")
        else:
            customer.phone = phone
            if name and name.strip():
                customer.name = name.strip()
            if notes is not MISSING:
                customer.notes = notes or ""
            customer.last_appointment_at = last_appointment_at or now
            customer.updated_at = now

        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to save customer {key}: {e}")
            raise
        return customer

    @staticmethod
    def get_customer_by_phone(db: Session, phone: str) -> Optional[Customer]:
        """Look up a customer by phone number in any format."""
        key = phone_to_key(phone)
        if not key:
            return None
        return db.get(Customer, key)

    @staticmethod
    def search_customers_by_phone_prefix(
        db: Session,
        prefix: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[Customer]:
        """
        Customers whose phone key starts with the digits of prefix.

        Returns:
            Up to limit customers ordered by phone key; empty for a prefix without digits
        """
        key_prefix = phone_to_key(prefix)
        if not key_prefix:
            return []
        return db.query(Customer).filter(
            Customer.id.startswith(key_prefix, autoescape=True)
        ).order_by(Customer.id).limit(limit).all()

    @staticmethod
    def search_customers_by_name(
        db: Session,
        prefix: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[Customer]:
        """Customers whose name starts with prefix, case-insensitively."""
        prefix = (prefix or "").strip()
        if not prefix:
            return []
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return db.query(Customer).filter(
            Customer.name.ilike(f"{escaped}%", escape="\\")
        ).order_by(Customer.name).limit(limit).all()
