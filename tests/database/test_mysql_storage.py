from __future__ import annotations

from datetime import date, datetime, timezone

import mysql.connector
import pytest
from mysql.connector import errorcode

from face_attendance.attendance.model import AttendanceEvent
from face_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from face_attendance.attendance.repository import DuplicateEventError, MissingPrerequisiteError
from face_attendance.core.enums import EventKind
from face_attendance.core.exceptions import StorageUnavailable
from face_attendance.database.bootstrap import schema_statements
from face_attendance.database.connection import DBConfig
from face_attendance.database.mysql_base import db_cursor


class FakeCursor:
    def __init__(self, *, error=None, rowcount=1, lastrowid=7):
        self._error = error
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.executed = []
        self.closed = False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


class FakeFactory:
    def __init__(self, conn=None, connect_error=None):
        self._conn = conn
        self._connect_error = connect_error

    def connect(self):
        if self._connect_error is not None:
            raise self._connect_error
        return self._conn


def _event(kind=EventKind.IN) -> AttendanceEvent:
    return AttendanceEvent(
        user_id="alice",
        work_date=date(2026, 2, 2),
        kind=kind,
        event_time=datetime(2026, 2, 2, 8, 25, tzinfo=timezone.utc),
        confidence_score=0.93,
    )


def test_db_cursor_commits_and_closes():
    cur = FakeCursor()
    conn = FakeConnection(cur)

    with db_cursor(FakeFactory(conn)) as (_, c):
        c.execute("SELECT 1")

    assert conn.commits == 1
    assert conn.rollbacks == 0
    assert cur.closed and conn.closed


def test_db_cursor_connect_failure_is_storage_unavailable():
    factory = FakeFactory(connect_error=mysql.connector.errors.InterfaceError("refused"))

    with pytest.raises(StorageUnavailable) as excinfo:
        with db_cursor(factory):
            pass

    assert excinfo.value.retryable is True


def test_db_cursor_operational_error_rolls_back():
    cur = FakeCursor(error=mysql.connector.errors.OperationalError("lost connection"))
    conn = FakeConnection(cur)

    with pytest.raises(StorageUnavailable):
        with db_cursor(FakeFactory(conn)) as (_, c):
            c.execute("SELECT 1")

    assert conn.rollbacks == 1
    assert conn.commits == 0
    assert conn.closed


def test_db_cursor_passes_integrity_errors_through():
    cur = FakeCursor(error=mysql.connector.IntegrityError(msg="dup", errno=errorcode.ER_DUP_ENTRY))
    conn = FakeConnection(cur)

    with pytest.raises(mysql.connector.IntegrityError):
        with db_cursor(FakeFactory(conn)) as (_, c):
            c.execute("INSERT")

    assert conn.rollbacks == 1


def test_append_returns_stored_event_with_id():
    cur = FakeCursor(lastrowid=42)
    repo = MySQLAttendanceRepository(FakeFactory(FakeConnection(cur)))

    stored = repo.append(_event())

    assert stored.event_id == 42
    _, params = cur.executed[0]
    # stored as naive UTC
    assert params[3] == datetime(2026, 2, 2, 8, 25)


def test_append_duplicate_key_is_duplicate_event():
    cur = FakeCursor(error=mysql.connector.IntegrityError(msg="dup", errno=errorcode.ER_DUP_ENTRY))
    repo = MySQLAttendanceRepository(FakeFactory(FakeConnection(cur)))

    with pytest.raises(DuplicateEventError):
        repo.append(_event())


def test_append_other_integrity_error_is_not_masked():
    cur = FakeCursor(error=mysql.connector.IntegrityError(msg="fk", errno=errorcode.ER_NO_REFERENCED_ROW_2))
    repo = MySQLAttendanceRepository(FakeFactory(FakeConnection(cur)))

    with pytest.raises(mysql.connector.IntegrityError):
        repo.append(_event())


def test_conditional_append_without_prerequisite():
    cur = FakeCursor(rowcount=0)
    conn = FakeConnection(cur)
    repo = MySQLAttendanceRepository(FakeFactory(conn))

    with pytest.raises(MissingPrerequisiteError):
        repo.append(_event(EventKind.OUT), require_kind=EventKind.IN)

    sql, params = cur.executed[0]
    assert "WHERE EXISTS" in sql
    assert params[-1] == "IN"
    assert conn.rollbacks == 1


def test_schema_statements_skip_comments_and_database_switches():
    sql = """
-- header
CREATE DATABASE IF NOT EXISTS face_attendance;
USE face_attendance;
CREATE TABLE a (id INT, note VARCHAR(8) DEFAULT 'x;y');
CREATE TABLE b (id INT);
"""

    statements = schema_statements(sql)

    assert statements == [
        "CREATE TABLE a (id INT, note VARCHAR(8) DEFAULT 'x;y')",
        "CREATE TABLE b (id INT)",
    ]


def test_db_config_from_settings_mapping():
    config = DBConfig.from_mapping({"host": "db", "port": "3307", "user": "svc", "password": "pw"})

    assert config.port == 3307
    assert config.database == "face_attendance"
    assert config.describe() == "svc@db:3307/face_attendance"
