"""Civil-time helpers for the single configured timezone"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from ..config import APP_TIMEZONE

LOCAL_TZ = ZoneInfo(APP_TIMEZONE)


def utcnow() -> datetime:
    """Naive UTC timestamp, the format stored in DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_today() -> date:
    return datetime.now(LOCAL_TZ).date()


def local_tomorrow() -> date:
    return local_today() + timedelta(days=1)


def add_minutes(value, minutes: int):
    """Shift a time of day by minutes; None if it would cross midnight"""
    total = value.hour * 60 + value.minute + minutes
    if total < 0 or total >= 24 * 60:
        return None
    return value.replace(hour=total // 60, minute=total % 60, second=0, microsecond=0)


def is_whole_minute(value) -> bool:
    """Times are stored at minute resolution"""
    return value.second == 0 and value.microsecond == 0


def to_minutes(value) -> int:
    return value.hour * 60 + value.minute


def date_range(start: date, end: date):
    """Inclusive range of dates"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
