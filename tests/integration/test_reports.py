"""Integration tests for weekly and monthly reports."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from ecotrack.activities.service import log_activity
from ecotrack.reports.service import get_monthly_report, get_weekly_report

MARCH_10 = date(2026, 3, 10)


@pytest.mark.asyncio
async def test_weekly_report(db_session, user):
    await log_activity(db_session, None, user.id, "goods", "clothing", 20, "USD", activity_date=date(2026, 2, 28))
    await log_activity(db_session, None, user.id, "transport", "petrol", 100, "km", activity_date=date(2026, 3, 9))
    await log_activity(db_session, None, user.id, "food", "beef", 1, "kg", activity_date=date(2026, 3, 9))
    await log_activity(db_session, None, user.id, "energy", "electricity", 10, "kWh", activity_date=date(2026, 3, 4))
    await db_session.commit()

    report = await get_weekly_report(db_session, user.id, today=MARCH_10)

    assert report["period"]["start_date"] == date(2026, 3, 4)
    assert report["period"]["end_date"] == MARCH_10
    assert report["period"]["week_number"] == 11

    summary = report["summary"]
    assert summary["total_co2"] == pytest.approx(52.2)
    assert summary["activities_logged"] == 3
    assert summary["daily_average"] == 7.46
    assert summary["status"] == "on-track"

    assert report["comparison"]["previous_week_total"] == 10.0
    assert report["comparison"]["trend"] == "increased"
    assert report["comparison"]["change"] == 422.0

    breakdown = report["category_breakdown"]
    assert breakdown["food"] == 27.0
    assert breakdown["percentages"]["food"] == 51.72

    assert [row["date"] for row in report["daily_breakdown"]] == ["2026-03-04", "2026-03-09"]
    assert report["daily_breakdown"][1]["activities_count"] == 2

    top = report["top_contributors"]
    assert [t["category"] for t in top] == ["food", "transport", "energy"]


@pytest.mark.asyncio
async def test_weekly_report_covers_exactly_seven_days(db_session, user):
    day = date(2026, 3, 3)
    while day <= MARCH_10:
        await log_activity(db_session, None, user.id, "energy", "electricity", 10, "kWh", activity_date=day)
        day += timedelta(days=1)
    await db_session.commit()

    report = await get_weekly_report(db_session, user.id, today=MARCH_10)

    rows = report["daily_breakdown"]
    assert len(rows) == 7
    assert rows[0]["date"] == "2026-03-04"
    assert report["summary"]["total_co2"] == pytest.approx(29.4)
    assert report["summary"]["activities_logged"] == 7
    assert report["summary"]["daily_average"] == 4.2
    assert report["comparison"]["previous_week_total"] == 4.2


@pytest.mark.asyncio
async def test_weekly_report_empty(db_session, user):
    report = await get_weekly_report(db_session, user.id, today=MARCH_10)
    assert report["summary"]["total_co2"] == 0.0
    assert report["comparison"]["trend"] == "stable"
    assert report["category_breakdown"]["percentages"]["energy"] == 0.0
    assert report["top_contributors"] == []


@pytest.mark.asyncio
async def test_monthly_report(db_session, user):
    await log_activity(db_session, None, user.id, "goods", "clothing", 500, "USD", activity_date=date(2026, 3, 2))
    await log_activity(db_session, None, user.id, "goods", "clothing", 500, "USD", activity_date=date(2026, 4, 2))
    await db_session.commit()

    report = await get_monthly_report(db_session, user.id, today=MARCH_10)
    assert report["total_co2"] == 250.0
    assert report["monthly_limit"] == 500.0
    assert report["percentage"] == 50.0
    assert report["breakdown"]["goods"] == 250.0
    assert report["activities_count"] == 1
