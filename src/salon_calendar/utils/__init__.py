"""
Utility modules for the salon calendar.

This package contains shared helpers for date and time-of-day handling and
phone number normalization.
"""
