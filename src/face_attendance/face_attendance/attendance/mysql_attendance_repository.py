from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..common.datetime_utils import as_utc, to_db_datetime
from ..core.constants import DEFAULT_EVENT_LIMIT
from ..core.enums import EventKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, is_duplicate_key
from .model import AttendanceEvent, EventFilter
from .repository import AttendanceRepository, DuplicateEventError, MissingPrerequisiteError

_COLUMNS = "event_id, user_id, work_date, event_kind, event_time, confidence_score"


def _row_to_event(r: dict) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=int(r["event_id"]),
        user_id=str(r["user_id"]),
        work_date=r["work_date"],
        kind=EventKind(r["event_kind"]),
        event_time=as_utc(r["event_time"]),
        confidence_score=float(r["confidence_score"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, event: AttendanceEvent, *, require_kind: Optional[EventKind] = None) -> AttendanceEvent:
        values = (
            event.user_id,
            event.work_date,
            event.kind.value,
            to_db_datetime(event.event_time),
            float(event.confidence_score),
        )
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                if require_kind is None:
                    cur.execute(
                        """
                        INSERT INTO attendance_events(user_id, work_date, event_kind, event_time, confidence_score)
                        VALUES(%s,%s,%s,%s,%s)
                        """,
                        values,
                    )
                else:
                    # Single statement: the prerequisite check and the insert are one atomic write.
                    cur.execute(
                        """
                        INSERT INTO attendance_events(user_id, work_date, event_kind, event_time, confidence_score)
                        SELECT %s,%s,%s,%s,%s FROM DUAL
                        WHERE EXISTS (
                            SELECT 1 FROM attendance_events
                            WHERE user_id=%s AND work_date=%s AND event_kind=%s
                        )
                        """,
                        values + (event.user_id, event.work_date, require_kind.value),
                    )
                    if cur.rowcount == 0:
                        raise MissingPrerequisiteError(event, require_kind)
                event_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicateEventError(event) from exc
            raise

        return AttendanceEvent(
            event_id=event_id,
            user_id=event.user_id,
            work_date=event.work_date,
            kind=event.kind,
            event_time=event.event_time,
            confidence_score=event.confidence_score,
        )

    def list_for_day(self, user_id: str, work_date: date) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                WHERE user_id=%s AND work_date=%s
                ORDER BY event_id ASC
                """,
                (user_id, work_date),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def list_events(self, event_filter: EventFilter) -> Sequence[AttendanceEvent]:
        clauses: list[str] = []
        params: list[object] = []

        if event_filter.user_id is not None:
            clauses.append("user_id=%s")
            params.append(event_filter.user_id)
        if event_filter.start_date is not None:
            clauses.append("work_date >= %s")
            params.append(event_filter.start_date)
        if event_filter.end_date is not None:
            clauses.append("work_date <= %s")
            params.append(event_filter.end_date)
        if event_filter.kind is not None:
            clauses.append("event_kind=%s")
            params.append(event_filter.kind.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(event_filter.limit or DEFAULT_EVENT_LIMIT))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                {where}
                ORDER BY created_at DESC, event_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row_to_event(r) for r in fetchall(cur)]
