from __future__ import annotations

import threading
from datetime import date, datetime, timezone
from typing import Optional

import pytest

from face_attendance.attendance.model import AttendanceEvent, EventFilter
from face_attendance.attendance.repository import DuplicateEventError, MissingPrerequisiteError
from face_attendance.container import wire
from face_attendance.core.enums import EventKind
from face_attendance.embeddings.model import EnrolledEmbedding
from face_attendance.extraction.extractor import FeatureExtractor


class InMemoryEmbeddings:
    def __init__(self, vectors: Optional[dict[str, tuple]] = None):
        self._by_user: dict[str, EnrolledEmbedding] = {}
        self.put_calls = 0
        for user_id, vector in (vectors or {}).items():
            self._by_user[user_id] = EnrolledEmbedding(
                user_id=user_id,
                vector=tuple(float(v) for v in vector),
                updated_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            )

    def get(self, user_id: str) -> Optional[EnrolledEmbedding]:
        return self._by_user.get(user_id)

    def put(self, embedding: EnrolledEmbedding) -> None:
        self.put_calls += 1
        self._by_user[embedding.user_id] = embedding

    def list_all(self):
        return [self._by_user[k] for k in sorted(self._by_user)]


class InMemoryAttendance:
    """Mirrors the MySQL unique key and conditional insert under one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: list[AttendanceEvent] = []
        self._id = 0

    @property
    def events(self) -> list[AttendanceEvent]:
        return list(self._events)

    def _exists(self, user_id: str, work_date: date, kind: EventKind) -> bool:
        return any(e.user_id == user_id and e.work_date == work_date and e.kind == kind for e in self._events)

    def append(self, event: AttendanceEvent, *, require_kind: Optional[EventKind] = None) -> AttendanceEvent:
        with self._lock:
            if require_kind is not None and not self._exists(event.user_id, event.work_date, require_kind):
                raise MissingPrerequisiteError(event, require_kind)
            if self._exists(event.user_id, event.work_date, event.kind):
                raise DuplicateEventError(event)

            self._id += 1
            stored = AttendanceEvent(
                event_id=self._id,
                user_id=event.user_id,
                work_date=event.work_date,
                kind=event.kind,
                event_time=event.event_time,
                confidence_score=event.confidence_score,
            )
            self._events.append(stored)
            return stored

    def list_for_day(self, user_id: str, work_date: date):
        return [e for e in self._events if e.user_id == user_id and e.work_date == work_date]

    def list_events(self, event_filter: EventFilter):
        items = [
            e
            for e in self._events
            if (event_filter.user_id is None or e.user_id == event_filter.user_id)
            and (event_filter.start_date is None or e.work_date >= event_filter.start_date)
            and (event_filter.end_date is None or e.work_date <= event_filter.end_date)
            and (event_filter.kind is None or e.kind == event_filter.kind)
        ]
        items.sort(key=lambda e: e.event_id, reverse=True)
        if event_filter.limit:
            items = items[: event_filter.limit]
        return items


class FakeBackend:
    def __init__(self, encodings):
        self.encodings = encodings
        self.calls = 0

    def __call__(self, image):
        self.calls += 1
        return self.encodings


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 8, 25, 0, tzinfo=timezone.utc)


@pytest.fixture
def alice_vector() -> tuple:
    return (1.0, 0.0, 0.0, 0.0)


@pytest.fixture
def bob_vector() -> tuple:
    return (0.0, 1.0, 0.0, 0.0)


@pytest.fixture
def embeddings_repo(alice_vector, bob_vector) -> InMemoryEmbeddings:
    return InMemoryEmbeddings({"alice": alice_vector, "bob": bob_vector})


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def container(embeddings_repo, attendance_repo, alice_vector):
    extractor = FeatureExtractor(dimension=4, backend=FakeBackend([alice_vector]))
    return wire(
        embeddings_repo=embeddings_repo,
        attendance_repo=attendance_repo,
        match_threshold=0.6,
        embedding_dimension=4,
        extractor=extractor,
    )
