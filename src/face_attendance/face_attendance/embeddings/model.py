from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class EnrolledEmbedding:
    """Domain entity: the single enrolled face vector of a user."""

    user_id: str
    vector: tuple[float, ...]
    updated_at: datetime

    @property
    def dimension(self) -> int:
        return len(self.vector)
