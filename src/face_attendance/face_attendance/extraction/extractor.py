"""
Feature extraction lifecycle.

How a face becomes a vector is delegated to a backend (by default the
``face_recognition`` library, 128-d encodings). This module only owns the
one-time setup and the readiness check around it.
"""

from __future__ import annotations

import io
import logging
import threading
from typing import Callable, Optional, Sequence

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..core.exceptions import DimensionMismatch, ExtractorNotReady, ValidationError

logger = logging.getLogger(__name__)

# backend(rgb_image) -> list of encodings, one per detected face
Backend = Callable[[np.ndarray], Sequence[Sequence[float]]]


def _load_face_recognition_backend() -> Backend:
    try:
        import face_recognition
    except ImportError as exc:
        raise ExtractorNotReady(
            "face_recognition is not installed; install the 'vision' extra to enable image capture"
        ) from exc

    def backend(image: np.ndarray):
        return face_recognition.face_encodings(image)

    return backend


class FeatureExtractor:
    """Turns an uploaded image into a fixed-length feature vector.

    ``load()`` must be called once before ``extract()``; it is idempotent and
    thread-safe.
    """

    def __init__(self, *, dimension: int, backend: Optional[Backend] = None,
                 backend_loader: Callable[[], Backend] = _load_face_recognition_backend):
        self._dimension = int(dimension)
        self._backend = backend
        self._backend_loader = backend_loader
        self._lock = threading.Lock()
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def load(self) -> None:
        with self._lock:
            if self._ready:
                return
            if self._backend is None:
                self._backend = self._backend_loader()
            self._ready = True
        logger.info("Feature extractor ready (dimension=%d)", self._dimension)

    def extract(self, image_bytes: bytes) -> tuple[float, ...]:
        if not self._ready:
            raise ExtractorNotReady("Feature extractor has not been loaded")

        image = self._decode(image_bytes)
        encodings = list(self._backend(image))
        if not encodings:
            raise ValidationError("No face detected in the image")
        if len(encodings) > 1:
            raise ValidationError("More than one face detected in the image")

        vector = tuple(float(v) for v in encodings[0])
        if len(vector) != self._dimension:
            raise DimensionMismatch(expected=self._dimension, actual=len(vector))
        return vector

    @staticmethod
    def _decode(image_bytes: bytes) -> np.ndarray:
        if not image_bytes:
            raise ValidationError("Empty image")
        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                return np.asarray(img.convert("RGB"))
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            raise ValidationError("Unreadable image") from exc
