from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.enums import DayState, EventKind


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one IN or OUT punch. Immutable once stored."""

    user_id: str
    work_date: date
    kind: EventKind
    event_time: datetime
    confidence_score: float
    event_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "user_id": self.user_id,
            "work_date": self.work_date.isoformat(),
            "kind": self.kind.value,
            "event_time": self.event_time.isoformat(),
            "confidence_score": round(float(self.confidence_score), 6),
        }


@dataclass(frozen=True)
class DayStatus:
    """Derived view of one (user, day) key. Never stored."""

    user_id: str
    work_date: date
    time_in: Optional[datetime] = None
    time_out: Optional[datetime] = None

    @property
    def has_in(self) -> bool:
        return self.time_in is not None

    @property
    def has_out(self) -> bool:
        return self.time_out is not None

    @property
    def duration(self) -> Optional[timedelta]:
        if self.time_in is None or self.time_out is None:
            return None
        return self.time_out - self.time_in

    @property
    def state(self) -> DayState:
        if self.has_out:
            return DayState.COMPLETE
        if self.has_in:
            return DayState.CLOCKED_IN
        return DayState.EMPTY

    @classmethod
    def from_events(cls, user_id: str, work_date: date, events) -> "DayStatus":
        time_in = None
        time_out = None
        for e in events:
            if e.user_id != user_id or e.work_date != work_date:
                continue
            if e.kind == EventKind.IN:
                time_in = e.event_time
            elif e.kind == EventKind.OUT:
                time_out = e.event_time
        return cls(user_id=user_id, work_date=work_date, time_in=time_in, time_out=time_out)

    def to_dict(self) -> dict:
        duration = self.duration
        return {
            "user_id": self.user_id,
            "work_date": self.work_date.isoformat(),
            "state": self.state.value,
            "has_time_in": self.has_in,
            "has_time_out": self.has_out,
            "time_in": self.time_in.isoformat() if self.time_in else None,
            "time_out": self.time_out.isoformat() if self.time_out else None,
            "duration_seconds": duration.total_seconds() if duration is not None else None,
            "total_hours": round(duration.total_seconds() / 3600, 2) if duration is not None else None,
        }


@dataclass(frozen=True)
class EventFilter:
    """Read-side filter for reporting. All fields optional; date range is inclusive."""

    user_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    kind: Optional[EventKind] = None
    limit: Optional[int] = None
