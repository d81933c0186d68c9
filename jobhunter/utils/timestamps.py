"""UTC timestamp helpers.

Stored timestamps are fixed-width ISO 8601 strings
(``YYYY-MM-DDTHH:MM:SS.ffffffZ``) so they sort and compare lexically in SQL.
"""

from datetime import datetime, timezone
from typing import Optional

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_storage(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime for a timestamp column."""
    if dt is None:
        return None
    return ensure_utc(dt).strftime(STORAGE_FORMAT)


def from_storage(value: Optional[str]) -> Optional[datetime]:
    """Parse a timestamp column value back into an aware UTC datetime."""
    if not value:
        return None
    trimmed = value.rstrip("Z")
    try:
        dt = datetime.strptime(trimmed, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(trimmed, "%Y-%m-%dT%H:%M:%S")
    return dt.replace(tzinfo=timezone.utc)


def start_of_month(now: Optional[datetime] = None) -> datetime:
    """Midnight UTC on the first day of the month containing ``now``."""
    current = ensure_utc(now) or utc_now()
    return current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
