from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import as_utc, now_utc
from ..common.validators import require_user_id, require_vector
from ..core.actor import Actor
from ..core.exceptions import AuthorizationError, NotEnrolled
from ..matching.matcher import FaceMatcher
from ..matching.model import MatchResult
from .model import EnrolledEmbedding
from .repository import EmbeddingRepository

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Use case: register, read and search enrolled face embeddings."""

    def __init__(
        self,
        embeddings: EmbeddingRepository,
        matcher: FaceMatcher,
        *,
        dimension: int,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._embeddings = embeddings
        self._matcher = matcher
        self._dimension = int(dimension)
        self._clock = clock

    @property
    def dimension(self) -> int:
        return self._dimension

    def enroll(self, actor: Actor, target_user_id: str, vector, *, now: Optional[datetime] = None) -> EnrolledEmbedding:
        target_user_id = require_user_id(target_user_id)
        actor.require_self_or_admin(target_user_id)
        values = require_vector(vector, dimension=self._dimension)

        embedding = EnrolledEmbedding(
            user_id=target_user_id,
            vector=values,
            updated_at=as_utc(now if now is not None else self._clock()),
        )
        self._embeddings.put(embedding)

        logger.info("Face enrolled - User: %s, By: %s", target_user_id, actor.user_id)
        return embedding

    def get_enrollment(self, actor: Actor, target_user_id: str) -> EnrolledEmbedding:
        target_user_id = require_user_id(target_user_id)
        actor.require_self_or_admin(target_user_id)

        embedding = self._embeddings.get(target_user_id)
        if embedding is None:
            raise NotEnrolled(target_user_id)
        return embedding

    def catalog(self) -> list[tuple[str, tuple[float, ...]]]:
        return [(e.user_id, e.vector) for e in self._embeddings.list_all()]

    def identify(self, actor: Actor, vector) -> Optional[MatchResult]:
        """Admin-only: find which enrolled user an unknown face belongs to."""

        if not actor.is_admin:
            raise AuthorizationError("Only admins can identify faces")
        values = require_vector(vector, dimension=self._dimension)

        match = self._matcher.best_match(values, self.catalog())
        if match is None:
            logger.info("Face identify - no match, By: %s", actor.user_id)
        else:
            logger.info("Face identify - User: %s, Similarity: %.3f", match.user_id, match.similarity)
        return match
