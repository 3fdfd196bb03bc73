# src/fanout_debugger/db/time.py
"""Time utilities for database models."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps read back from backends without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def elapsed_ms(since: datetime) -> int:
    """Whole milliseconds of wall-clock time elapsed since ``since``."""
    return int((utcnow() - as_utc(since)).total_seconds() * 1000)
