"""
Salon calendar scheduling core.

Resolves employee working hours for a date, generates bookable start times,
and validates appointment creates, edits and moves against existing bookings.
"""

__version__ = "0.1.0"
