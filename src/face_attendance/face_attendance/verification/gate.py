from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional

from ..attendance.ledger import AttendanceLedger
from ..attendance.model import AttendanceEvent, DayStatus
from ..common.datetime_utils import as_utc, now_utc, utc_day
from ..common.validators import require_user_id
from ..core.enums import EventKind
from ..core.exceptions import (
    AlreadyClockedIn,
    AlreadyClockedOut,
    DayAlreadyComplete,
    IdentityNotVerified,
    NotEnrolled,
)
from ..embeddings.repository import EmbeddingRepository
from ..matching.matcher import FaceMatcher

logger = logging.getLogger(__name__)


class VerificationGate:
    """Single entry point: a capture claiming to be a user becomes the next legal
    attendance event for that user's day, or a precise rejection.

    The confidence score stored on the event is always the similarity computed
    here; callers cannot supply one.
    """

    def __init__(
        self,
        embeddings: EmbeddingRepository,
        matcher: FaceMatcher,
        ledger: AttendanceLedger,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._embeddings = embeddings
        self._matcher = matcher
        self._ledger = ledger
        self._clock = clock

    def submit(
        self,
        claimed_user_id: str,
        captured_vector,
        work_date: Optional[date] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceEvent:
        claimed_user_id = require_user_id(claimed_user_id)
        now = as_utc(now if now is not None else self._clock())
        work_date = work_date or utc_day(now)

        enrolled = self._embeddings.get(claimed_user_id)
        if enrolled is None:
            logger.warning("Attendance rejected - User: %s, Reason: not enrolled", claimed_user_id)
            raise NotEnrolled(claimed_user_id)

        verification = self._matcher.verify_claim(captured_vector, claimed_user_id, enrolled.vector)
        if not verification.accepted:
            logger.warning(
                "Attendance rejected - User: %s, Reason: identity not verified, Similarity: %.3f",
                claimed_user_id,
                verification.similarity,
            )
            raise IdentityNotVerified(verification.similarity, verification.threshold)

        status = self._ledger.get_day_status(claimed_user_id, work_date)
        kind = self._next_kind(status)
        try:
            event = self._record(kind, claimed_user_id, work_date, verification.similarity, now)
        except (AlreadyClockedIn, AlreadyClockedOut):
            # Lost a race for the same key: re-read once, retry only if the slot is still open.
            logger.info(
                "Attendance race detected - User: %s, Date: %s, Kind: %s", claimed_user_id, work_date, kind.value
            )
            status = self._ledger.get_day_status(claimed_user_id, work_date)
            if _has_kind(status, kind):
                raise
            event = self._record(kind, claimed_user_id, work_date, verification.similarity, now)

        logger.info(
            "Attendance marked - User: %s, Kind: %s, Confidence: %.3f",
            event.user_id,
            event.kind.value,
            event.confidence_score,
        )
        return event

    @staticmethod
    def _next_kind(status: DayStatus) -> EventKind:
        if not status.has_in:
            return EventKind.IN
        if not status.has_out:
            return EventKind.OUT
        raise DayAlreadyComplete(
            "Already completed attendance for today", user_id=status.user_id, work_date=status.work_date
        )

    def _record(
        self, kind: EventKind, user_id: str, work_date: date, similarity: float, now: datetime
    ) -> AttendanceEvent:
        if kind == EventKind.IN:
            return self._ledger.record_time_in(user_id, work_date, similarity, now=now)
        return self._ledger.record_time_out(user_id, work_date, similarity, now=now)


def _has_kind(status: DayStatus, kind: EventKind) -> bool:
    return status.has_in if kind == EventKind.IN else status.has_out
