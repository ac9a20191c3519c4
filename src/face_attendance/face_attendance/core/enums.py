from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Session roles consumed from the hosting auth layer."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class EventKind(str, Enum):
    """Kind of an attendance event, stored verbatim in the database."""

    IN = "IN"
    OUT = "OUT"


class DayState(str, Enum):
    """Per (user, day) state machine: EMPTY -> CLOCKED_IN -> COMPLETE."""

    EMPTY = "EMPTY"
    CLOCKED_IN = "CLOCKED_IN"
    COMPLETE = "COMPLETE"
