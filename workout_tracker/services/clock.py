from collections.abc import Callable
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from workout_tracker.config import settings

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """FastAPI dependency; tests override it to pin `now`."""
    return utc_now


def get_app_timezone() -> ZoneInfo:
    try:
        return ZoneInfo(settings.APP_TIMEZONE)
    except ZoneInfoNotFoundError:
        return ZoneInfo("UTC")


def as_utc(value: datetime) -> datetime:
    # SQLite hands DateTime(timezone=True) columns back naive; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_now(now: datetime) -> datetime:
    return as_utc(now).astimezone(get_app_timezone())


def local_today(now: datetime) -> date:
    return local_now(now).date()


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Truncated minute difference, never negative."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return max(int(seconds // 60), 0)
