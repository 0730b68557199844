"""
UTC helpers.

All timestamps are stored and compared in UTC. SQLite returns naive
datetimes for timezone-aware columns, so values read back are normalized
with ``ensure_utc`` before any comparison.
"""

from datetime import datetime, time, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if dt is None:
        return None
    return _as_utc(dt)


def start_of_utc_day(dt: datetime) -> datetime:
    return datetime.combine(_as_utc(dt).date(), time.min, tzinfo=timezone.utc)
