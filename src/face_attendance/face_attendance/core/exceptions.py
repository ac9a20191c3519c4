from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "forbidden"


class NotEnrolled(DomainError):
    """Raised when a user has no enrolled face embedding."""

    code = "not_enrolled"

    def __init__(self, user_id: str):
        super().__init__(f"No face registered for user {user_id}. Please register a face first.")
        self.user_id = user_id


class DimensionMismatch(DomainError):
    """Raised when a vector does not have the expected length."""

    code = "dimension_mismatch"

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected a vector of length {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class IdentityNotVerified(DomainError):
    """Raised when the captured face does not match the claimant's enrolled face.

    Carries only the claimant's own similarity and the threshold.
    """

    code = "identity_not_verified"

    def __init__(self, similarity: float, threshold: float):
        super().__init__(
            f"Face verification failed. Similarity: {similarity * 100:.1f}%. "
            f"Minimum required: {threshold * 100:.0f}%."
        )
        self.similarity = similarity
        self.threshold = threshold


class AttendanceStateError(DomainError):
    """An attendance transition was attempted from the wrong state."""

    code = "attendance_state_error"

    def __init__(self, message: str, *, user_id: Optional[str] = None, work_date=None):
        super().__init__(message)
        self.user_id = user_id
        self.work_date = work_date


class AlreadyClockedIn(AttendanceStateError):
    code = "already_clocked_in"


class NotClockedIn(AttendanceStateError):
    code = "not_clocked_in"


class AlreadyClockedOut(AttendanceStateError):
    code = "already_clocked_out"


class DayAlreadyComplete(AttendanceStateError):
    code = "day_already_complete"


class ExtractorNotReady(DomainError):
    """Raised when feature extraction is used before its one-time setup."""

    code = "extractor_not_ready"


class StorageUnavailable(Exception):
    """Infrastructure fault in the storage layer. Safe for the caller to retry."""

    code = "storage_unavailable"
    retryable = True
