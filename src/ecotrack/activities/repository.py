"""Activity queries shared by the goal, reward, dashboard and report services."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.db.models import Activity
from ecotrack.errors import NotFoundError


async def activities_between(
    db: AsyncSession,
    user_id: int,
    start: date,
    end: date,
) -> Sequence[Activity]:
    """All of a user's activities dated within [start, end], oldest first."""
    result = await db.execute(
        select(Activity)
        .where(
            Activity.user_id == user_id,
            Activity.activity_date >= start,
            Activity.activity_date <= end,
        )
        .order_by(Activity.activity_date.asc(), Activity.id.asc())
    )
    return result.scalars().all()


async def sum_co2_between(db: AsyncSession, user_id: int, start: date, end: date) -> float:
    """Sum of calculated_co2 over [start, end]; 0 when there are no activities."""
    result = await db.execute(
        select(func.coalesce(func.sum(Activity.calculated_co2), 0.0)).where(
            Activity.user_id == user_id,
            Activity.activity_date >= start,
            Activity.activity_date <= end,
        )
    )
    return float(result.scalar() or 0.0)


async def get_owned_activity(db: AsyncSession, user_id: int, activity_id: int) -> Activity:
    """Fetch an activity that belongs to the user.

    Raises:
        NotFoundError: missing, or owned by someone else.
    """
    result = await db.execute(
        select(Activity).where(Activity.id == activity_id, Activity.user_id == user_id)
    )
    activity = result.scalar_one_or_none()
    if activity is None:
        raise NotFoundError("Activity not found")
    return activity
