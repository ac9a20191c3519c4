"""
Schema bootstrap: create the database if needed and apply ``database/schema.sql``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterator, Mapping, Union

import mysql.connector

from ..core.exceptions import StorageUnavailable
from .connection import DBConfig, DatabaseConnection
from .mysql_base import db_cursor

logger = logging.getLogger(__name__)

_LINE_COMMENT = re.compile(r"(?m)^\s*--.*$")
_CREATE_DATABASE = re.compile(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$")
_USE_DATABASE = re.compile(r"(?im)^\s*USE\b.*?;\s*$")

DBSettings = Union[DBConfig, Mapping[str, Any]]


def _as_config(db: DBSettings) -> DBConfig:
    return db if isinstance(db, DBConfig) else DBConfig.from_mapping(db)


def iter_sql_statements(sql: str) -> Iterator[str]:
    # ';' ends a statement unless it sits inside a quoted string or identifier
    start = 0
    quote = None
    escaped = False

    for i, ch in enumerate(sql):
        if escaped:
            escaped = False
        elif quote is not None:
            if ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
        elif ch == ";":
            stmt = sql[start:i].strip()
            if stmt:
                yield stmt
            start = i + 1

    tail = sql[start:].strip()
    if tail:
        yield tail


def schema_statements(text: str) -> list[str]:
    """Executable statements of a schema file.

    Comments and any CREATE DATABASE / USE lines are dropped; the target
    database always comes from settings.
    """
    text = _LINE_COMMENT.sub("", text)
    text = _USE_DATABASE.sub("", _CREATE_DATABASE.sub("", text))
    return list(iter_sql_statements(text))


def apply_schema(db: DBSettings, *, schema_path: Union[str, Path]) -> int:
    """Create the configured database if missing and run every schema statement in it.

    Returns the number of statements executed.
    """
    config = _as_config(db)
    statements = schema_statements(Path(schema_path).read_text(encoding="utf-8"))

    try:
        conn = DatabaseConnection(config).connect(with_database=False)
    except mysql.connector.Error as exc:
        logger.error("Schema bootstrap could not connect to %s: %s", config.describe(), exc)
        raise StorageUnavailable("Database is unavailable") from exc

    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        cur.execute(f"USE `{config.database}`")
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    except mysql.connector.Error as exc:
        logger.error("Schema bootstrap failed on %s: %s", config.describe(), exc)
        raise StorageUnavailable("Could not apply database schema") from exc
    finally:
        conn.close()

    logger.info("Schema applied to %s (%d statements)", config.describe(), len(statements))
    return len(statements)


def list_tables(db: DBSettings) -> list[str]:
    with db_cursor(DatabaseConnection(_as_config(db)), dictionary=False) as (_, cur):
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
