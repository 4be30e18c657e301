"""Datetime utilities for common operations."""

from datetime import datetime, timedelta, timezone
from typing import Optional


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    Some database backends return timezone-aware columns without tzinfo;
    values are always written in UTC, so treating naive values as UTC is safe.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def add_minutes(dt: datetime, minutes: int) -> datetime:
    """
    Add minutes to datetime.

    Args:
        dt: Base datetime
        minutes: Number of minutes to add

    Returns:
        New datetime
    """
    return dt + timedelta(minutes=minutes)


def is_past(dt: datetime) -> bool:
    """
    Check if datetime is in the past.

    Args:
        dt: Datetime to check (naive values are treated as UTC)

    Returns:
        True if in the past
    """
    return ensure_utc(dt) < now()


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as ISO-8601 in UTC, passing None through."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()
