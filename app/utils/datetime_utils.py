"""
Time helpers. Every stored and compared timestamp is naive UTC; booking
dates and times are interpreted as UTC as well.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Optional


def naive_utc_now() -> datetime:
    """Current UTC time without tzinfo, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Drop tzinfo after converting to UTC; naive input is taken to be UTC already."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """Parse provider timestamps ("...Z", offsets or naive) into naive UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not isinstance(value, str):
        return None
    try:
        return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def booking_datetime(booking_date: date, booking_time: Optional[time] = None) -> datetime:
    """Scheduled start of a booking; midnight when no time was recorded."""
    return datetime.combine(booking_date, booking_time or time(0, 0))


def hours_until(target: datetime, now: datetime) -> float:
    """Signed number of hours from ``now`` to ``target`` (negative once passed)."""
    return (to_naive_utc(target) - to_naive_utc(now)).total_seconds() / 3600


def days_until(target: date, today: date) -> int:
    return (target - today).days
