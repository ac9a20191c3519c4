from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import EnrolledEmbedding


class EmbeddingRepository(Protocol):
    """Key-value store: at most one embedding per user."""

    def get(self, user_id: str) -> Optional[EnrolledEmbedding]:
        raise NotImplementedError

    def put(self, embedding: EnrolledEmbedding) -> None:
        """Insert or replace the user's embedding."""

        raise NotImplementedError

    def list_all(self) -> Sequence[EnrolledEmbedding]:
        raise NotImplementedError
