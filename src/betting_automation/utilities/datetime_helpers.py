"""Timezone-aware datetime utilities for consistent UTC timestamp handling.

All functions return timezone-aware datetime objects so that session start/end
stamps, bet results and notifications never mix naive and aware values.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo is not None
        True
    """
    return datetime.now(UTC)


def normalize_to_utc(dt: datetime) -> datetime:
    """Return a timezone-aware UTC datetime from naive or aware inputs."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    if dt.tzinfo == UTC:
        return dt
    return dt.astimezone(UTC)


def to_iso_utc(dt: datetime) -> str:
    """Convert a datetime to ISO 8601 string, ensuring UTC timezone.

    Example:
        >>> dt = datetime(2024, 1, 15, 10, 30, 45, tzinfo=UTC)
        >>> to_iso_utc(dt)
        '2024-01-15T10:30:45+00:00'
    """
    return normalize_to_utc(dt).isoformat()


def parse_iso_utc(value: str) -> datetime:
    """Parse an ISO 8601 timestamp (``Z`` suffix allowed) into an aware UTC datetime."""
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("Empty timestamp")
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    return normalize_to_utc(datetime.fromisoformat(cleaned))


__all__ = [
    "utc_now",
    "normalize_to_utc",
    "to_iso_utc",
    "parse_iso_utc",
]
