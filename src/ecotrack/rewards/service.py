"""Monthly token rewards.

A claim always settles the previous calendar month, whose data is final.
The reward is the unused part of that month's budget. Each month can be
claimed once; a claim that earns nothing still uses up the month.
"""

from __future__ import annotations

import json
from datetime import date, datetime

import structlog
from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.activities.repository import sum_co2_between
from ecotrack.config import get_settings
from ecotrack.db.models import Goal, User
from ecotrack.emissions.calculator import round_co2
from ecotrack.errors import AlreadyClaimedError, NotFoundError
from ecotrack.goals.service import get_goal
from ecotrack.periods import as_utc, month_bounds, month_start_utc, previous_month_of, utc_now, utc_today
from ecotrack.users.service import get_user_by_id, lock_user

logger = structlog.get_logger()

ALREADY_CLAIMED_MESSAGE = "Reward for last month already claimed."


def resolve_limit(goal: Goal | None, user: User) -> float:
    """Goal limit for the month, else the user's own limit, else the default."""
    if goal is not None and goal.monthly_limit:
        return goal.monthly_limit
    return user.monthly_limit or get_settings().default_monthly_limit


def compute_reward(limit: float, usage: float) -> float:
    """Unused budget, never negative."""
    return round_co2(max(0.0, limit - usage))


def is_claimed(last_claim: datetime | None, period_start: datetime) -> bool:
    """A claim made after the settled month began means that month is done."""
    return last_claim is not None and as_utc(last_claim) > period_start


async def get_reward_status(db: AsyncSession, user_id: int, today: date | None = None) -> dict:
    """Running month's usage and the reward it would earn if the month ended now."""
    today = today or utc_today()
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")

    start, end = month_bounds(today.month, today.year)
    usage = round_co2(await sum_co2_between(db, user_id, start, end))
    limit = resolve_limit(await get_goal(db, user_id, today.month, today.year), user)
    potential = compute_reward(limit, usage)

    prev_month, prev_year = previous_month_of(today)
    can_claim = not is_claimed(user.last_reward_claim_date, month_start_utc(prev_month, prev_year))

    if usage < limit:
        message = f"You're doing great! You're on track to earn {potential:.2f} tokens."
    else:
        message = f"You've exceeded your monthly limit of {limit:g}kg CO2."

    return {
        "current_usage": usage,
        "limit": limit,
        "potential_reward": potential,
        "tokens": user.tokens,
        "total_co2_saved": user.total_co2_saved,
        "can_claim_previous_month": can_claim,
        "message": message,
    }


async def _notify_claim(redis: object, payload: dict) -> None:
    if redis is None:
        return
    try:
        await redis.publish("pubsub:reward_claimed", json.dumps(payload))  # type: ignore[union-attr]
    except Exception:
        logger.warning("reward_publish_failed", user_id=payload["user_id"], exc_info=True)


async def claim_reward(
    db: AsyncSession,
    redis: object,
    user_id: int,
    now: datetime | None = None,
) -> dict:
    """Settle the previous calendar month and credit its unused budget as tokens.

    The already-claimed check and the write are one conditional UPDATE, so of
    two concurrent claims exactly one succeeds.

    Raises:
        AlreadyClaimedError: the previous month was already settled.
        NotFoundError: no such user.
    """
    now = as_utc(now) if now is not None else utc_now()
    prev_month, prev_year = previous_month_of(now.date())
    period_start = month_start_utc(prev_month, prev_year)
    start, end = month_bounds(prev_month, prev_year)

    user = await lock_user(db, user_id)
    if is_claimed(user.last_reward_claim_date, period_start):
        raise AlreadyClaimedError(ALREADY_CLAIMED_MESSAGE)

    usage = round_co2(await sum_co2_between(db, user_id, start, end))
    limit = resolve_limit(await get_goal(db, user_id, prev_month, prev_year), user)
    reward = compute_reward(limit, usage)

    result = await db.execute(
        update(User)
        .where(
            User.id == user_id,
            or_(User.last_reward_claim_date.is_(None), User.last_reward_claim_date <= period_start),
        )
        .values(
            tokens=User.tokens + reward,
            total_co2_saved=User.total_co2_saved + reward,
            last_reward_claim_date=now,
            version=User.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise AlreadyClaimedError(ALREADY_CLAIMED_MESSAGE)
    await db.refresh(user)

    if reward > 0:
        message = f"Congratulations! You earned {reward:.2f} tokens for last month."
    else:
        message = f"You exceeded your limit last month ({usage:g} / {limit:g}). Good luck this month!"

    logger.info(
        "reward_claimed",
        user_id=user_id,
        month=prev_month,
        year=prev_year,
        usage=usage,
        limit=limit,
        reward=reward,
        balance=user.tokens,
    )
    await _notify_claim(redis, {
        "user_id": user_id,
        "month": prev_month,
        "year": prev_year,
        "reward": reward,
        "balance": user.tokens,
    })
    return {"reward": reward, "new_balance": user.tokens, "message": message}
