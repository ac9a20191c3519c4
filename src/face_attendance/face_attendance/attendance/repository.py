from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import EventKind
from .model import AttendanceEvent, EventFilter


class DuplicateEventError(Exception):
    """Storage refused an event whose (user_id, work_date, kind) already exists."""

    def __init__(self, event: AttendanceEvent):
        super().__init__(f"{event.kind.value} already recorded for {event.user_id} on {event.work_date}")
        self.event = event


class MissingPrerequisiteError(Exception):
    """Storage refused a conditional append because the required event is absent."""

    def __init__(self, event: AttendanceEvent, required: EventKind):
        super().__init__(f"{required.value} missing for {event.user_id} on {event.work_date}")
        self.event = event
        self.required = required


class AttendanceRepository(Protocol):
    """Append-only event store.

    Implementations must make `append` atomic: the uniqueness of
    (user_id, work_date, kind) and the `require_kind` precondition are checked
    by the storage itself, not by a separate read.
    """

    def append(self, event: AttendanceEvent, *, require_kind: Optional[EventKind] = None) -> AttendanceEvent:
        raise NotImplementedError

    def list_for_day(self, user_id: str, work_date: date) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def list_events(self, event_filter: EventFilter) -> Sequence[AttendanceEvent]:
        """Newest first."""

        raise NotImplementedError
