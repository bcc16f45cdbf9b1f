"""Monthly goal tracking.

current_total is a materialized aggregate: it is rebuilt from every activity
in the month whenever one of them changes, never patched incrementally.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.activities.repository import activities_between
from ecotrack.config import get_settings
from ecotrack.database import flush_or_conflict
from ecotrack.db.models import Goal
from ecotrack.emissions.calculator import calculate_total, round_co2, round_half_up, to_decimal
from ecotrack.errors import ConflictError, ValidationError
from ecotrack.periods import month_bounds, utc_today
from ecotrack.users.service import lock_user

logger = structlog.get_logger()

WARNING_PERCENT = 80
EXCEEDED_PERCENT = 100

STATUS_WITHIN = "within"
STATUS_WARNING = "warning"
STATUS_EXCEEDED = "exceeded"


def classify_status(percentage: Decimal | float) -> str:
    """within below 80%, warning from 80% up to 100%, exceeded from 100%."""
    if percentage >= EXCEEDED_PERCENT:
        return STATUS_EXCEEDED
    if percentage >= WARNING_PERCENT:
        return STATUS_WARNING
    return STATUS_WITHIN


def goal_percentage(current_total: float, monthly_limit: float) -> Decimal:
    """Share of the budget used, in percent.

    Decimal so a total sitting exactly on 80% or 100% of a limit like 2.9
    lands on the boundary instead of a hair below it.
    """
    if monthly_limit <= 0:
        return Decimal(EXCEEDED_PERCENT) if current_total > 0 else Decimal(0)
    return to_decimal(current_total) * 100 / to_decimal(monthly_limit)


def daily_limit_for(monthly_limit: float) -> int:
    return round_half_up(monthly_limit / 30)


def refresh_status(goal: Goal) -> None:
    """Re-derive status from current_total and monthly_limit."""
    goal.status = classify_status(goal_percentage(goal.current_total, goal.monthly_limit))
    goal.updated_at = datetime.now(timezone.utc)


def goal_to_dict(goal: Goal) -> dict:
    """API shape of a goal, with whole-percent usage and remaining budget."""
    return {
        "id": goal.id,
        "month": goal.month,
        "year": goal.year,
        "monthly_limit": goal.monthly_limit,
        "daily_limit": goal.daily_limit,
        "current_total": goal.current_total,
        "status": goal.status,
        "percentage": round_half_up(goal_percentage(goal.current_total, goal.monthly_limit)),
        "remaining": round_co2(max(0.0, goal.monthly_limit - goal.current_total)),
        "updated_at": goal.updated_at,
    }


async def get_goal(db: AsyncSession, user_id: int, month: int, year: int) -> Goal | None:
    result = await db.execute(
        select(Goal).where(Goal.user_id == user_id, Goal.month == month, Goal.year == year)
    )
    return result.scalar_one_or_none()


async def get_or_create_goal(db: AsyncSession, user_id: int, month: int, year: int) -> Goal:
    """Get the (user, month, year) goal, creating it with the default limit.

    The insert runs in a SAVEPOINT; if a concurrent request created the row
    first, the unique constraint fires and the winner's row is read instead.
    """
    goal = await get_goal(db, user_id, month, year)
    if goal is not None:
        return goal

    limit = get_settings().default_monthly_limit
    try:
        async with db.begin_nested():
            goal = Goal(
                user_id=user_id,
                month=month,
                year=year,
                monthly_limit=limit,
                daily_limit=daily_limit_for(limit),
                current_total=0.0,
                status=STATUS_WITHIN,
                updated_at=datetime.now(timezone.utc),
            )
            db.add(goal)
    except IntegrityError:
        goal = await get_goal(db, user_id, month, year)
        if goal is None:
            msg = "Goal creation conflicted, please retry"
            raise ConflictError(msg) from None
        logger.info("goal_create_race_resolved", user_id=user_id, month=month, year=year)
    return goal


async def recompute_goal(db: AsyncSession, user_id: int, month: int, year: int) -> Goal:
    """Rebuild current_total and status for one (user, month) from its activities."""
    goal = await get_or_create_goal(db, user_id, month, year)
    start, end = month_bounds(month, year)
    activities = await activities_between(db, user_id, start, end)

    goal.current_total = calculate_total(activities)["total"]
    refresh_status(goal)
    await flush_or_conflict(db)

    logger.info(
        "goal_recomputed",
        user_id=user_id,
        month=month,
        year=year,
        activities=len(activities),
        current_total=goal.current_total,
        status=goal.status,
    )
    return goal


async def get_current_goal(db: AsyncSession, user_id: int, today: date | None = None) -> Goal:
    """This month's goal, created on first access."""
    today = today or utc_today()
    return await get_or_create_goal(db, user_id, today.month, today.year)


async def update_goal_limit(
    db: AsyncSession,
    user_id: int,
    monthly_limit: float,
    today: date | None = None,
) -> Goal:
    """Change this month's limit; daily limit and status follow.

    Raises:
        ValidationError: limit is not a positive finite number.
    """
    if isinstance(monthly_limit, bool) or not isinstance(monthly_limit, (int, float)):
        raise ValidationError("Please provide a valid monthly limit", field="monthly_limit")
    if not math.isfinite(monthly_limit) or monthly_limit <= 0:
        raise ValidationError("Please provide a valid monthly limit", field="monthly_limit")

    await lock_user(db, user_id)
    goal = await get_current_goal(db, user_id, today)
    goal.monthly_limit = float(monthly_limit)
    goal.daily_limit = daily_limit_for(goal.monthly_limit)
    refresh_status(goal)
    await flush_or_conflict(db)

    logger.info("goal_limit_updated", user_id=user_id, monthly_limit=goal.monthly_limit, status=goal.status)
    return goal


async def get_goal_history(db: AsyncSession, user_id: int, limit: int | None = None) -> list[Goal]:
    """Most recent goals first."""
    limit = limit or get_settings().goal_history_limit
    result = await db.execute(
        select(Goal)
        .where(Goal.user_id == user_id)
        .order_by(Goal.year.desc(), Goal.month.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
