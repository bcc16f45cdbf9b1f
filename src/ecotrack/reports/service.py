"""Weekly and monthly report data (rendering is the client's job)."""

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.activities.aggregation import aggregate_by_day
from ecotrack.activities.repository import activities_between
from ecotrack.config import get_settings
from ecotrack.emissions.calculator import calculate_total, round_co2
from ecotrack.emissions.factors import CATEGORIES
from ecotrack.goals.service import get_goal, goal_percentage
from ecotrack.periods import iso_week_number, month_bounds, trailing_window, utc_today

REPORT_DAYS = 7
TOP_CONTRIBUTORS = 5


def _trend_label(change: float) -> str:
    if change > 0:
        return "increased"
    if change < 0:
        return "decreased"
    return "stable"


async def get_weekly_report(db: AsyncSession, user_id: int, today: date | None = None) -> dict:
    """Last 7 days against the previous 7, with breakdowns and top contributors."""
    today = today or utc_today()
    start, end = trailing_window(today, REPORT_DAYS)
    activities = await activities_between(db, user_id, start, end)
    totals = calculate_total(activities)
    total = totals["total"]

    prev_start, prev_end = trailing_window(start - timedelta(days=1), REPORT_DAYS)
    previous_total = calculate_total(await activities_between(db, user_id, prev_start, prev_end))["total"]
    change = round_co2((total - previous_total) / previous_total * 100) if previous_total > 0 else 0.0

    goal = await get_goal(db, user_id, today.month, today.year)
    daily_limit = goal.daily_limit if goal and goal.daily_limit else get_settings().default_daily_limit
    daily_average = round_co2(total / REPORT_DAYS)

    counts: dict[str, int] = {}
    for activity in activities:
        key = activity.activity_date.isoformat()
        counts[key] = counts.get(key, 0) + 1

    top = sorted(activities, key=lambda a: a.calculated_co2, reverse=True)[:TOP_CONTRIBUTORS]

    return {
        "period": {"start_date": start, "end_date": end, "week_number": iso_week_number(end)},
        "summary": {
            "total_co2": total,
            "daily_average": daily_average,
            "activities_logged": len(activities),
            "daily_limit": daily_limit,
            "status": "on-track" if daily_average <= daily_limit else "over-limit",
        },
        "comparison": {
            "previous_week_total": previous_total,
            "change": change,
            "trend": _trend_label(change),
        },
        "category_breakdown": {
            **{category: totals[category] for category in CATEGORIES},
            "percentages": {
                category: round_co2(totals[category] / total * 100) if total > 0 else 0.0
                for category in CATEGORIES
            },
        },
        "daily_breakdown": [
            {**day, "activities_count": counts[day["date"]]} for day in aggregate_by_day(activities)
        ],
        "top_contributors": [
            {
                "id": a.id,
                "category": a.category,
                "sub_category": a.sub_category,
                "value": a.value,
                "unit": a.unit,
                "co2": a.calculated_co2,
                "date": a.activity_date,
                "percentage": round_co2(a.calculated_co2 / total * 100) if total > 0 else 0.0,
            }
            for a in top
        ],
    }


async def get_monthly_report(db: AsyncSession, user_id: int, today: date | None = None) -> dict:
    """Current calendar month totals against its goal."""
    today = today or utc_today()
    start, end = month_bounds(today.month, today.year)
    activities = await activities_between(db, user_id, start, end)
    totals = calculate_total(activities)

    goal = await get_goal(db, user_id, today.month, today.year)
    limit = goal.monthly_limit if goal else get_settings().default_monthly_limit

    return {
        "month": today.month,
        "year": today.year,
        "total_co2": totals["total"],
        "monthly_limit": limit,
        "percentage": round_co2(goal_percentage(totals["total"], limit)) if goal else 0.0,
        "breakdown": {category: totals[category] for category in CATEGORIES},
        "activities_count": len(activities),
    }
