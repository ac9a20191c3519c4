from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MatchResult:
    """Best catalog entry for an unknown face."""

    user_id: str
    similarity: float


@dataclass(frozen=True)
class Verification:
    """Outcome of a one-to-one claim check."""

    user_id: str
    accepted: bool
    similarity: float
    threshold: float
