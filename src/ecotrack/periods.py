"""Calendar helpers: month and day windows, all in UTC.

Activities carry a calendar date, so month membership is a plain date range
check and never depends on time of day.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_calendar_date(value: date | datetime) -> date:
    """Strip time of day."""
    return value.date() if isinstance(value, datetime) else value


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """(first day, last day) of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def previous_month(month: int, year: int) -> tuple[int, int]:
    """(month, year) of the calendar month before the given one."""
    if month == 1:
        return 12, year - 1
    return month - 1, year


def previous_month_of(day: date) -> tuple[int, int]:
    return previous_month(day.month, day.year)


def month_start_utc(month: int, year: int) -> datetime:
    """First instant of a calendar month in UTC."""
    return datetime.combine(date(year, month, 1), time.min, tzinfo=timezone.utc)


def trailing_window(today: date, days: int) -> tuple[date, date]:
    """The last `days` calendar days ending today, both ends inclusive."""
    return today - timedelta(days=days - 1), today


def days_between(later: date, earlier: date) -> int:
    """Calendar-day gap; negative when later is actually earlier."""
    return (later - earlier).days


def iso_week_number(day: date) -> int:
    return day.isocalendar()[1]
