"""Activity logging: create, edit, delete, and the read projections over them.

Every write locks the owning user, recomputes the affected month's goal and
drops the cached dashboard. Only creation drives the streak.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.activities.aggregation import aggregate_by_day
from ecotrack.activities.repository import activities_between, get_owned_activity
from ecotrack.config import get_settings
from ecotrack.dashboard.service import invalidate_dashboard
from ecotrack.database import flush_or_conflict
from ecotrack.db.models import Activity
from ecotrack.emissions.calculator import calculate, calculate_total
from ecotrack.emissions.factors import CATEGORIES
from ecotrack.errors import ValidationError
from ecotrack.gamification.streak_service import apply_streak
from ecotrack.goals.service import get_goal, recompute_goal
from ecotrack.periods import to_calendar_date, trailing_window, utc_today
from ecotrack.users.service import lock_user

logger = structlog.get_logger()

NOTES_MAX_LENGTH = 500
WEEKLY_TREND_DAYS = 7
MONTHLY_TREND_DAYS = 30

_EDITABLE_FIELDS = frozenset({"category", "sub_category", "value", "unit", "activity_date", "notes"})


def _check_unit(unit: object) -> str:
    if not isinstance(unit, str) or not unit.strip():
        raise ValidationError("unit is required", field="unit")
    return unit.strip()


def _check_notes(notes: object) -> str | None:
    if notes is None:
        return None
    if not isinstance(notes, str):
        raise ValidationError("notes must be text", field="notes")
    if len(notes) > NOTES_MAX_LENGTH:
        raise ValidationError(f"notes cannot exceed {NOTES_MAX_LENGTH} characters", field="notes")
    return notes


def _check_date(value: object) -> date:
    if not isinstance(value, date):
        raise ValidationError("activity_date must be a calendar date", field="activity_date")
    return to_calendar_date(value)


async def log_activity(
    db: AsyncSession,
    redis: object,
    user_id: int,
    category: str,
    sub_category: str,
    value: float,
    unit: str,
    activity_date: date | None = None,
    notes: str | None = None,
) -> Activity:
    """Record an activity, then refresh its month's goal and the user's streak.

    Emissions are calculated before anything is written, so bad input leaves
    no trace.
    """
    calculated_co2 = calculate(category, sub_category, value)
    unit = _check_unit(unit)
    notes = _check_notes(notes)
    day = _check_date(activity_date) if activity_date is not None else utc_today()

    user = await lock_user(db, user_id)

    activity = Activity(
        user_id=user_id,
        activity_date=day,
        category=category,
        sub_category=sub_category,
        value=float(value),
        unit=unit,
        calculated_co2=calculated_co2,
        notes=notes,
    )
    db.add(activity)
    await db.flush()

    await recompute_goal(db, user_id, day.month, day.year)
    await apply_streak(redis, user, day)
    await flush_or_conflict(db)
    await invalidate_dashboard(redis, user_id)

    logger.info(
        "activity_logged",
        user_id=user_id,
        activity_id=activity.id,
        category=category,
        sub_category=sub_category,
        calculated_co2=calculated_co2,
        streak=user.streak_current,
    )
    return activity


async def update_activity(
    db: AsyncSession,
    redis: object,
    user_id: int,
    activity_id: int,
    changes: dict[str, Any],
) -> Activity:
    """Apply a partial edit. Emissions are recalculated when category,
    sub-category or value change. If the date moves to another month, both
    months' goals are recomputed. The streak is left alone.
    """
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Cannot update fields: {sorted(unknown)}", field=sorted(unknown)[0])

    await lock_user(db, user_id)
    activity = await get_owned_activity(db, user_id, activity_id)
    old_month = (activity.activity_date.month, activity.activity_date.year)

    category = changes.get("category") or activity.category
    sub_category = changes.get("sub_category") or activity.sub_category
    value = changes["value"] if changes.get("value") is not None else activity.value

    if (category, sub_category, value) != (activity.category, activity.sub_category, activity.value):
        activity.calculated_co2 = calculate(category, sub_category, value)
        activity.category = category
        activity.sub_category = sub_category
        activity.value = float(value)
    if changes.get("unit") is not None:
        activity.unit = _check_unit(changes["unit"])
    if changes.get("activity_date") is not None:
        activity.activity_date = _check_date(changes["activity_date"])
    if "notes" in changes:
        activity.notes = _check_notes(changes["notes"])
    await db.flush()

    new_month = (activity.activity_date.month, activity.activity_date.year)
    await recompute_goal(db, user_id, *new_month)
    if old_month != new_month:
        await recompute_goal(db, user_id, *old_month)
    await invalidate_dashboard(redis, user_id)

    logger.info("activity_updated", user_id=user_id, activity_id=activity.id, calculated_co2=activity.calculated_co2)
    return activity


async def delete_activity(db: AsyncSession, redis: object, user_id: int, activity_id: int) -> None:
    """Remove an activity and recompute its month's goal."""
    await lock_user(db, user_id)
    activity = await get_owned_activity(db, user_id, activity_id)
    day = activity.activity_date

    await db.delete(activity)
    await db.flush()

    await recompute_goal(db, user_id, day.month, day.year)
    await invalidate_dashboard(redis, user_id)
    logger.info("activity_deleted", user_id=user_id, activity_id=activity_id)


async def get_activity(db: AsyncSession, user_id: int, activity_id: int) -> Activity:
    return await get_owned_activity(db, user_id, activity_id)


async def list_activities(
    db: AsyncSession,
    user_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    category: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[Sequence[Activity], int]:
    """Newest first, with optional date range and category filters.

    Returns (page of activities, total matching).
    """
    if category is not None and category not in CATEGORIES:
        raise ValidationError(f"Unknown category: {category}", field="category")
    if page < 1:
        raise ValidationError("page must be 1 or greater", field="page")
    if limit < 1:
        raise ValidationError("limit must be 1 or greater", field="limit")

    filters = [Activity.user_id == user_id]
    if start_date is not None:
        filters.append(Activity.activity_date >= start_date)
    if end_date is not None:
        filters.append(Activity.activity_date <= end_date)
    if category is not None:
        filters.append(Activity.category == category)

    total = (await db.execute(select(func.count()).select_from(Activity).where(*filters))).scalar_one()
    result = await db.execute(
        select(Activity)
        .where(*filters)
        .order_by(Activity.activity_date.desc(), Activity.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return result.scalars().all(), int(total)


async def get_daily_summary(db: AsyncSession, user_id: int, day: date | None = None) -> dict:
    """One day's totals against the daily limit of the current month's goal."""
    today = utc_today()
    day = day or today
    activities = await activities_between(db, user_id, day, day)
    totals = calculate_total(activities)

    goal = await get_goal(db, user_id, today.month, today.year)
    daily_limit = goal.daily_limit if goal and goal.daily_limit else get_settings().default_daily_limit

    return {
        "date": day,
        "activities": len(activities),
        **totals,
        "daily_limit": daily_limit,
        "status": "exceeded" if totals["total"] > daily_limit else "within",
    }


async def _trend(db: AsyncSession, user_id: int, days: int, today: date | None) -> dict:
    start, end = trailing_window(today or utc_today(), days)
    activities = await activities_between(db, user_id, start, end)
    return {"start_date": start, "end_date": end, "trends": aggregate_by_day(activities)}


async def get_weekly_trend(db: AsyncSession, user_id: int, today: date | None = None) -> dict:
    """Daily series for the last 7 days."""
    return await _trend(db, user_id, WEEKLY_TREND_DAYS, today)


async def get_monthly_trend(db: AsyncSession, user_id: int, today: date | None = None) -> dict:
    """Daily series for the last 30 days."""
    return await _trend(db, user_id, MONTHLY_TREND_DAYS, today)
