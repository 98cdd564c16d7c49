# teamtasks/dates.py
"""Clock and calendar-day helpers.

Due dates are stored naive, as wall-clock time in the service zone.  Aware
values are converted into that zone on the way in, so the "today" and
"overdue" comparisons below see the same numbers on every storage backend.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from teamtasks import settings

Clock = Callable[[], datetime]


def get_zone(name: str) -> tzinfo:
    """Resolve a zone name, without needing tz data for plain UTC."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_now() -> datetime:
    """Current time as an aware datetime in the configured zone."""
    return datetime.now(get_zone(settings.TIMEZONE))


def as_zone(value: datetime, zone: tzinfo) -> datetime:
    """Attach *zone* to a naive datetime, or convert an aware one into it."""
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def to_wall_clock(value: Optional[datetime], zone: tzinfo) -> Optional[datetime]:
    """Normalize a due date for storage: naive wall-clock time in *zone*."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(zone).replace(tzinfo=None)


def day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Half-open ``[start of today, start of tomorrow)`` in now's zone.

    A naive *now* is taken to be UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def is_due_today(due_date: Optional[datetime], now: datetime) -> bool:
    if due_date is None:
        return False
    start, end = day_bounds(now)
    return start <= as_zone(due_date, start.tzinfo) < end


def is_past_due(due_date: Optional[datetime], now: datetime) -> bool:
    """True when the due date falls before the start of the current day."""
    if due_date is None:
        return False
    start, _ = day_bounds(now)
    return as_zone(due_date, start.tzinfo) < start
