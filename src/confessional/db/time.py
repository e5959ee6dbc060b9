# src/confessional/db/time.py
"""Time utilities shared by models and services."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive values are taken to already be in UTC, which is how SQLite hands
    back ``DateTime`` columns.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_db_time(value: datetime) -> datetime:
    """Return a naive UTC datetime for storage in a plain ``DateTime`` column."""
    return as_utc(value).replace(tzinfo=None)
