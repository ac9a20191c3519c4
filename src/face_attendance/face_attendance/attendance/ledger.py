from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import as_utc, now_utc, utc_day
from ..common.validators import require_score, require_user_id
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import EventKind
from ..core.exceptions import AlreadyClockedIn, AlreadyClockedOut, NotClockedIn, ValidationError
from .model import AttendanceEvent, DayStatus, EventFilter
from .repository import AttendanceRepository, DuplicateEventError, MissingPrerequisiteError

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """Append-only IN/OUT log with a per (user, day) state machine.

    EMPTY --record_time_in--> CLOCKED_IN --record_time_out--> COMPLETE

    Transitions are enforced by the repository's atomic append, so two concurrent
    requests for the same key cannot both succeed.
    """

    def __init__(self, events: AttendanceRepository, *, clock: Callable[[], datetime] = now_utc):
        self._events = events
        self._clock = clock

    def today(self) -> date:
        return utc_day(self._clock())

    def get_day_status(self, user_id: str, work_date: date) -> DayStatus:
        user_id = require_user_id(user_id)
        events = self._events.list_for_day(user_id, work_date)
        return DayStatus.from_events(user_id, work_date, events)

    def record_time_in(
        self,
        user_id: str,
        work_date: date,
        confidence_score: float,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceEvent:
        event = self._new_event(user_id, work_date, EventKind.IN, confidence_score, now)
        try:
            stored = self._events.append(event)
        except DuplicateEventError:
            raise AlreadyClockedIn(
                "You have already timed in today", user_id=event.user_id, work_date=work_date
            ) from None

        logger.info("Time in recorded - User: %s, Date: %s", stored.user_id, stored.work_date)
        return stored

    def record_time_out(
        self,
        user_id: str,
        work_date: date,
        confidence_score: float,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceEvent:
        event = self._new_event(user_id, work_date, EventKind.OUT, confidence_score, now)
        try:
            stored = self._events.append(event, require_kind=EventKind.IN)
        except MissingPrerequisiteError:
            raise NotClockedIn(
                "You must time in before timing out", user_id=event.user_id, work_date=work_date
            ) from None
        except DuplicateEventError:
            raise AlreadyClockedOut(
                "You have already timed out today", user_id=event.user_id, work_date=work_date
            ) from None

        logger.info("Time out recorded - User: %s, Date: %s", stored.user_id, stored.work_date)
        return stored

    def list_events(self, event_filter: Optional[EventFilter] = None) -> Sequence[AttendanceEvent]:
        event_filter = event_filter or EventFilter()
        if (
            event_filter.start_date is not None
            and event_filter.end_date is not None
            and event_filter.start_date > event_filter.end_date
        ):
            raise ValidationError("start_date must not be after end_date")
        if event_filter.limit is not None and int(event_filter.limit) <= 0:
            raise ValidationError("limit must be positive")
        return self._events.list_events(event_filter)

    def get_history(self, user_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[DayStatus]:
        """Most recent day statuses for one user, newest day first."""

        user_id = require_user_id(user_id)
        events = self._events.list_events(EventFilter(user_id=user_id, limit=limit * 2))

        by_day: dict[date, list[AttendanceEvent]] = {}
        for e in events:
            by_day.setdefault(e.work_date, []).append(e)

        days = sorted(by_day, reverse=True)[:limit]
        return [DayStatus.from_events(user_id, d, by_day[d]) for d in days]

    def _new_event(
        self,
        user_id: str,
        work_date: date,
        kind: EventKind,
        confidence_score: float,
        now: Optional[datetime],
    ) -> AttendanceEvent:
        user_id = require_user_id(user_id)
        score = require_score(confidence_score)
        event_time = as_utc(now if now is not None else self._clock())

        if utc_day(event_time) != work_date:
            raise ValidationError(
                f"Event time {event_time.isoformat()} does not fall on {work_date.isoformat()} (UTC)"
            )

        return AttendanceEvent(
            user_id=user_id,
            work_date=work_date,
            kind=kind,
            event_time=event_time,
            confidence_score=score,
        )
