from __future__ import annotations

from datetime import date, datetime, timezone


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current time, timezone-aware in UTC.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_day(value: datetime) -> date:
    """Calendar day an event belongs to. The day boundary is always UTC midnight."""
    return as_utc(value).date()


def to_db_datetime(value: datetime) -> datetime:
    """MySQL DATETIME has no zone: store naive UTC."""
    return as_utc(value).replace(tzinfo=None)
