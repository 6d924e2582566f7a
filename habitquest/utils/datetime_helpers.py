"""
Calendar Day Helpers

Centralizes every conversion between instants and calendar days so that the
write path (one completion per habit per day) and the read paths (streaks,
heatmap) always agree on where midnight is.

RULES:
- Instants are stored and compared as timezone-aware UTC datetimes
- A calendar day is always a date in the configured day-boundary zone
- Naive datetimes are assumed to be UTC
"""

import logging
from datetime import datetime, date, time, timedelta
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo

from habitquest import config

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")

TimeZoneLike = Union[str, ZoneInfo, None]


def get_day_boundary_timezone(tz: TimeZoneLike = None) -> ZoneInfo:
    """
    Resolve the zone used for calendar-day boundaries

    Args:
        tz: Explicit zone (name or ZoneInfo); defaults to DAY_BOUNDARY_TIMEZONE

    Returns:
        ZoneInfo for the day boundary
    """
    if isinstance(tz, ZoneInfo):
        return tz
    return ZoneInfo(tz or config.DAY_BOUNDARY_TIMEZONE)


def now_utc() -> datetime:
    """Current instant in UTC (timezone-aware)"""
    return datetime.now(UTC)


def ensure_aware(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes"""
    if dt.tzinfo is None:
        logger.debug(f"Received naive datetime, assuming UTC: {dt}")
        return dt.replace(tzinfo=UTC)
    return dt


def to_local_date(dt: datetime, tz: TimeZoneLike = None) -> date:
    """
    Truncate an instant to its calendar day in the day-boundary zone

    Args:
        dt: Instant (naive values are treated as UTC)
        tz: Optional zone override

    Returns:
        Calendar date
    """
    return ensure_aware(dt).astimezone(get_day_boundary_timezone(tz)).date()


def today_local(tz: TimeZoneLike = None, now: Optional[datetime] = None) -> date:
    """Today's calendar date in the day-boundary zone"""
    return to_local_date(now or now_utc(), tz)


def start_of_day(day: date, tz: TimeZoneLike = None) -> datetime:
    """
    Local midnight of a calendar day, expressed in UTC

    Args:
        day: Calendar date
        tz: Optional zone override

    Returns:
        Timezone-aware UTC datetime
    """
    zone = get_day_boundary_timezone(tz)
    return datetime.combine(day, time.min, tzinfo=zone).astimezone(UTC)


def iter_calendar_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from start through end, inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed between two instants (floor)"""
    return (ensure_aware(later) - ensure_aware(earlier)) // timedelta(days=1)
