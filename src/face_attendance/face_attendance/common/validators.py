from __future__ import annotations

import math
from typing import Sequence

from ..core.constants import MAX_USER_ID_LENGTH
from ..core.exceptions import DimensionMismatch, ValidationError


def require_user_id(value) -> str:
    if value is None:
        raise ValidationError("user_id is invalid")
    value = str(value).strip()
    if not value or len(value) > MAX_USER_ID_LENGTH:
        raise ValidationError("user_id is invalid")
    return value


def require_score(value: float, field_name: str = "confidence_score") -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if math.isnan(value) or value < 0.0 or value > 1.0:
        raise ValidationError(f"{field_name} must be within [0, 1]")
    return value


def require_vector(values, *, dimension: int | None = None, field_name: str = "embedding") -> tuple[float, ...]:
    """Coerce a JSON-ish sequence into a tuple of finite floats of the configured length."""

    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise ValidationError(f"{field_name} must be a list of numbers")
    try:
        vector = tuple(float(v) for v in values)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a list of numbers")

    if dimension is not None and len(vector) != dimension:
        raise DimensionMismatch(expected=dimension, actual=len(vector))
    if not all(math.isfinite(v) for v in vector):
        raise ValidationError(f"{field_name} contains non-finite values")
    return vector
