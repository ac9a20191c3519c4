"""
Embedding matching.

Compares face embeddings with cosine similarity against a fixed acceptance threshold.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from ..core.constants import DEFAULT_MATCH_THRESHOLD
from ..core.exceptions import DimensionMismatch, ValidationError
from .model import MatchResult, Verification

Vector = Union[Sequence[float], np.ndarray]


class FaceMatcher:
    """Pure, stateless matcher. Safe to share across request threads."""

    def __init__(self, *, threshold: float = DEFAULT_MATCH_THRESHOLD, dimension: Optional[int] = None):
        threshold = float(threshold)
        if not 0.0 < threshold <= 1.0:
            raise ValueError(f"threshold must be in (0, 1], got {threshold}")
        if dimension is not None and int(dimension) <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")

        self._threshold = threshold
        self._dimension = int(dimension) if dimension is not None else None

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    def is_accepted(self, similarity: float) -> bool:
        """Acceptance boundary is inclusive."""
        return float(similarity) >= self._threshold

    def similarity(self, a: Vector, b: Vector) -> float:
        """
        Cosine similarity of two equal-length vectors, in [-1, 1].

        A zero vector has similarity 0.0 with anything.

        Raises:
            DimensionMismatch: lengths differ
        """
        va = self._as_array(a)
        vb = self._as_array(b)
        if va.shape[0] != vb.shape[0]:
            raise DimensionMismatch(expected=va.shape[0], actual=vb.shape[0])

        norm_a = float(np.linalg.norm(va))
        norm_b = float(np.linalg.norm(vb))
        if norm_a == 0.0 or norm_b == 0.0:
            return 0.0

        # elementwise product then sum: bit-identical for (a, b) and (b, a)
        value = float(np.sum(va * vb)) / (norm_a * norm_b)
        return float(np.clip(value, -1.0, 1.0))

    def best_match(self, query: Vector, catalog: Iterable[Tuple[str, Vector]]) -> Optional[MatchResult]:
        """
        Identify an unknown face against every enrolled vector.

        Returns the catalog entry with the highest similarity, or None if the
        catalog is empty or the best similarity is below the threshold. When
        several entries tie at the maximum, the first one in catalog order wins.
        """
        q = self._check_query(query)

        ids: list[str] = []
        similarities: list[float] = []
        for user_id, vector in catalog:
            ids.append(user_id)
            similarities.append(self.similarity(q, vector))

        if not similarities:
            return None

        # np.argmax returns the first index of the maximum.
        best_idx = int(np.argmax(similarities))
        best_similarity = similarities[best_idx]
        if not self.is_accepted(best_similarity):
            return None
        return MatchResult(user_id=ids[best_idx], similarity=best_similarity)

    def verify_claim(self, query: Vector, claimed_user_id: str, enrolled_vector: Vector) -> Verification:
        """One-to-one check of a capture against the claimant's own enrolled vector."""
        q = self._check_query(query)
        similarity = self.similarity(q, enrolled_vector)
        return Verification(
            user_id=claimed_user_id,
            accepted=self.is_accepted(similarity),
            similarity=similarity,
            threshold=self._threshold,
        )

    def _check_query(self, query: Vector) -> np.ndarray:
        q = self._as_array(query)
        if self._dimension is not None and q.shape[0] != self._dimension:
            raise DimensionMismatch(expected=self._dimension, actual=q.shape[0])
        return q

    @staticmethod
    def _as_array(vector: Vector) -> np.ndarray:
        try:
            arr = np.asarray(vector, dtype=np.float64)
        except (TypeError, ValueError):
            raise ValidationError("Embedding must be a list of numbers")
        if arr.ndim != 1 or arr.shape[0] == 0:
            raise ValidationError("Embedding must be a non-empty flat list of numbers")
        if not np.all(np.isfinite(arr)):
            raise ValidationError("Embedding contains non-finite values")
        return arr
