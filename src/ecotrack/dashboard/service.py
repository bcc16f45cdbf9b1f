"""Dashboard snapshot aggregation.

Combines the current month's goal, today's total, the monthly category
breakdown and the month-over-month comparison. Results are cached in Redis
for a few seconds and dropped on every activity write.
"""

from __future__ import annotations

import json
from datetime import date

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.activities.repository import activities_between
from ecotrack.config import get_settings
from ecotrack.emissions.calculator import calculate_total, percentage_change, round_half_up
from ecotrack.errors import NotFoundError
from ecotrack.gamification.streak_service import streak_to_dict
from ecotrack.goals.service import get_or_create_goal, goal_to_dict
from ecotrack.periods import month_bounds, previous_month_of, utc_today
from ecotrack.users.service import get_user_by_id

logger = structlog.get_logger()

DASHBOARD_CACHE_KEY = "dashboard:snapshot:{user_id}"


async def invalidate_dashboard(redis: object, user_id: int) -> None:
    """Drop the cached snapshot after a write."""
    if redis is None:
        return
    try:
        await redis.delete(DASHBOARD_CACHE_KEY.format(user_id=user_id))  # type: ignore[union-attr]
    except Exception:
        logger.warning("dashboard_invalidate_failed", user_id=user_id, exc_info=True)


async def _cached(redis: object, key: str) -> dict | None:
    if redis is None:
        return None
    try:
        raw = await redis.get(key)  # type: ignore[union-attr]
    except Exception:
        logger.warning("dashboard_cache_read_failed", key=key, exc_info=True)
        return None
    return json.loads(raw) if raw else None


async def _store(redis: object, key: str, snapshot: dict) -> None:
    if redis is None:
        return
    try:
        await redis.setex(  # type: ignore[union-attr]
            key, get_settings().dashboard_cache_ttl_seconds, json.dumps(snapshot, default=str),
        )
    except Exception:
        logger.warning("dashboard_cache_write_failed", key=key, exc_info=True)


async def get_dashboard_snapshot(
    db: AsyncSession,
    redis: object,
    user_id: int,
    today: date | None = None,
) -> dict:
    """{goal, today, monthly, comparison, streak} for the user's current month."""
    use_cache = today is None
    today = today or utc_today()
    cache_key = DASHBOARD_CACHE_KEY.format(user_id=user_id)

    if use_cache:
        cached = await _cached(redis, cache_key)
        if cached is not None:
            return cached

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    goal = await get_or_create_goal(db, user_id, today.month, today.year)

    start, end = month_bounds(today.month, today.year)
    activities = await activities_between(db, user_id, start, end)
    monthly = calculate_total(activities)
    today_total = calculate_total(a for a in activities if a.activity_date == today)["total"]

    prev_month, prev_year = previous_month_of(today)
    prev_start, prev_end = month_bounds(prev_month, prev_year)
    previous_total = calculate_total(await activities_between(db, user_id, prev_start, prev_end))["total"]
    comparison = percentage_change(monthly["total"], previous_total)

    snapshot = {
        "goal": goal_to_dict(goal),
        "today": {
            "total": today_total,
            "daily_limit": goal.daily_limit,
            "percentage": round_half_up(today_total * 100 / goal.daily_limit) if goal.daily_limit > 0 else 0,
        },
        "monthly": monthly,
        "comparison": {
            "previous_total": previous_total,
            "percentage": comparison,
            "label": "increase" if comparison >= 0 else "decrease",
        },
        "streak": streak_to_dict(user),
    }

    if use_cache:
        await _store(redis, cache_key, snapshot)
    return snapshot
