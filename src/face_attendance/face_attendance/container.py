from __future__ import annotations

from dataclasses import dataclass

from .attendance.ledger import AttendanceLedger
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .core.constants import DEFAULT_EMBEDDING_DIMENSION, DEFAULT_MATCH_THRESHOLD
from .database.connection import DBConfig, DatabaseConnection
from .embeddings.mysql_embedding_repository import MySQLEmbeddingRepository
from .embeddings.repository import EmbeddingRepository
from .embeddings.service import EnrollmentService
from .extraction.extractor import FeatureExtractor
from .matching.matcher import FaceMatcher
from .verification.gate import VerificationGate


@dataclass(frozen=True)
class Container:
    embeddings_repo: EmbeddingRepository
    attendance_repo: AttendanceRepository

    matcher: FaceMatcher
    ledger: AttendanceLedger
    enrollment_service: EnrollmentService
    gate: VerificationGate
    extractor: FeatureExtractor


def wire(
    *,
    embeddings_repo: EmbeddingRepository,
    attendance_repo: AttendanceRepository,
    match_threshold: float = DEFAULT_MATCH_THRESHOLD,
    embedding_dimension: int = DEFAULT_EMBEDDING_DIMENSION,
    extractor: FeatureExtractor | None = None,
) -> Container:
    """Build services on top of any repository implementations."""

    matcher = FaceMatcher(threshold=match_threshold, dimension=embedding_dimension)
    ledger = AttendanceLedger(attendance_repo)
    enrollment_service = EnrollmentService(embeddings_repo, matcher, dimension=embedding_dimension)
    gate = VerificationGate(embeddings_repo, matcher, ledger)

    return Container(
        embeddings_repo=embeddings_repo,
        attendance_repo=attendance_repo,
        matcher=matcher,
        ledger=ledger,
        enrollment_service=enrollment_service,
        gate=gate,
        extractor=extractor or FeatureExtractor(dimension=embedding_dimension),
    )


def build_container(
    *,
    db_config: dict,
    match_threshold: float = DEFAULT_MATCH_THRESHOLD,
    embedding_dimension: int = DEFAULT_EMBEDDING_DIMENSION,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire(
        embeddings_repo=MySQLEmbeddingRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        match_threshold=match_threshold,
        embedding_dimension=embedding_dimension,
    )
