"""
Sentinel for absent values.

MISSING distinguishes "not provided" from an explicit None: an update argument
that was omitted versus one that clears a field, or a per-date schedule
override that does not exist versus one that marks the employee off.
"""

import enum


class MissingType(enum.Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = MissingType.MISSING
