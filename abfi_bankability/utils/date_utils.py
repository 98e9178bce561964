"""Date manipulation utilities"""

from datetime import datetime, timedelta, timezone
from typing import Tuple


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


def validity_window(start: datetime, days: int) -> Tuple[datetime, datetime]:
    """Return (valid_from, valid_until) for an assessment valid ``days`` days from start"""
    return start, start + timedelta(days=days)
