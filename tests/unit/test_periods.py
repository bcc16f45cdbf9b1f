"""Tests for calendar helpers."""

from datetime import date, datetime, timezone

from ecotrack.periods import (
    as_utc,
    days_between,
    iso_week_number,
    month_bounds,
    month_start_utc,
    previous_month,
    previous_month_of,
    to_calendar_date,
    trailing_window,
)


def test_month_bounds_leap_february():
    assert month_bounds(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(2, 2026) == (date(2026, 2, 1), date(2026, 2, 28))


def test_month_bounds_december():
    assert month_bounds(12, 2026) == (date(2026, 12, 1), date(2026, 12, 31))


def test_previous_month_wraps_year():
    assert previous_month(1, 2026) == (12, 2025)
    assert previous_month(7, 2026) == (6, 2026)
    assert previous_month_of(date(2026, 3, 15)) == (2, 2026)


def test_month_start_is_utc_midnight():
    start = month_start_utc(3, 2026)
    assert start == datetime(2026, 3, 1, tzinfo=timezone.utc)


def test_trailing_window_is_inclusive():
    assert trailing_window(date(2026, 3, 10), 7) == (date(2026, 3, 4), date(2026, 3, 10))
    assert trailing_window(date(2026, 3, 10), 1) == (date(2026, 3, 10), date(2026, 3, 10))


def test_as_utc_attaches_timezone():
    naive = datetime(2026, 3, 1, 12, 0)
    assert as_utc(naive).tzinfo == timezone.utc
    assert as_utc(naive).hour == 12


def test_to_calendar_date():
    assert to_calendar_date(datetime(2026, 3, 1, 23, 0)) == date(2026, 3, 1)
    assert to_calendar_date(date(2026, 3, 1)) == date(2026, 3, 1)


def test_days_between():
    assert days_between(date(2026, 3, 1), date(2026, 2, 28)) == 1
    assert days_between(date(2026, 2, 27), date(2026, 2, 28)) == -1


def test_iso_week_number():
    assert iso_week_number(date(2026, 1, 1)) == 1
    assert iso_week_number(date(2026, 2, 25)) == 9
