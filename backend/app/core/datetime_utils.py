"""
Datetime helpers for timezone-aware timestamps.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC.

    Session creation, response submission and completion all stamp times
    through this function so tests can patch a single place.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to a naive datetime.

    SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
    columns, so values read by the database store pass through here.

    Args:
        dt: Datetime to normalize, or None

    Returns:
        The timezone-aware datetime, or None when ``dt`` is None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt
