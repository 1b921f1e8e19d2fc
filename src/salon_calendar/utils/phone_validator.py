"""
Phone number utilities.

Customers are keyed by the digits of their phone number so that the same
customer is found regardless of how the number was typed.
"""

import re


def phone_to_key(phone: str) -> str:
    """
    Reduce a phone number to the digits used as the customer key.

    Args:
        phone: Phone number string (may contain spaces, dashes, parentheses, plus signs)

    Returns:
        Digits only; empty string when the input has no digits
    """
    if not phone:
        return ''
    return re.sub(r'\D', '', str(phone))


def validate_phone(phone: str) -> str:
    """
    Validate that a phone number contains digits and return it stripped.

    Raises:
        ValueError: If the phone number is empty or has no digits
    """
    if not phone or not phone.strip():
        raise ValueError('Phone number is required')
    if not phone_to_key(phone):
        raise ValueError('Invalid phone number format')
    return phone.strip()
