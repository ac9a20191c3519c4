from __future__ import annotations

import json
from typing import Optional, Sequence

from ..common.datetime_utils import as_utc, to_db_datetime
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import EnrolledEmbedding
from .repository import EmbeddingRepository


def _row_to_embedding(r: dict) -> EnrolledEmbedding:
    raw = r["embedding"]
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    values = json.loads(raw) if isinstance(raw, str) else raw
    return EnrolledEmbedding(
        user_id=str(r["user_id"]),
        vector=tuple(float(v) for v in values),
        updated_at=as_utc(r["updated_at"]),
    )


class MySQLEmbeddingRepository(EmbeddingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, user_id: str) -> Optional[EnrolledEmbedding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, embedding, updated_at
                FROM face_embeddings
                WHERE user_id=%s
                """,
                (user_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return _row_to_embedding(r)

    def put(self, embedding: EnrolledEmbedding) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO face_embeddings(user_id, embedding, dimension, updated_at)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    embedding=VALUES(embedding),
                    dimension=VALUES(dimension),
                    updated_at=VALUES(updated_at)
                """,
                (
                    embedding.user_id,
                    json.dumps(list(embedding.vector)),
                    embedding.dimension,
                    to_db_datetime(embedding.updated_at),
                ),
            )

    def list_all(self) -> Sequence[EnrolledEmbedding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, embedding, updated_at
                FROM face_embeddings
                ORDER BY user_id ASC
                """
            )
            return [_row_to_embedding(r) for r in fetchall(cur)]
