from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StorageUnavailable
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def is_duplicate_key(exc: BaseException) -> bool:
    return isinstance(exc, mysql.connector.IntegrityError) and getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor) in one transaction.

    Connection-level faults become StorageUnavailable. Integrity errors are re-raised
    untouched so repositories can map them to domain conflicts.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        logger.error("DB connect failed: %s", exc)
        raise StorageUnavailable("Database is unavailable") from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError:
        conn.rollback()
        raise
    except mysql.connector.Error as exc:
        _safe_rollback(conn)
        logger.error("DB operation failed: %s", exc)
        raise StorageUnavailable("Database operation failed") from exc
    except BaseException:
        _safe_rollback(conn)
        raise
    finally:
        conn.close()


def _safe_rollback(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error as exc:
        logger.warning("DB rollback failed: %s", exc)


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
