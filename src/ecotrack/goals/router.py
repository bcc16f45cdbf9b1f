"""Goal and dashboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.auth.dependencies import get_current_user
from ecotrack.dashboard.service import get_dashboard_snapshot, invalidate_dashboard
from ecotrack.database import commit_with_retry, get_session
from ecotrack.db.models import User
from ecotrack.goals.schemas import DashboardResponse, GoalHistoryResponse, GoalLimitRequest, GoalResponse
from ecotrack.goals.service import get_current_goal, get_goal_history, goal_to_dict, update_goal_limit
from ecotrack.redis_client import get_optional_redis

router = APIRouter(prefix="/api/v1/goals", tags=["Goals"])


@router.get("/current", response_model=GoalResponse)
async def current_goal(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """This month's goal, created with the default limit on first access."""
    user_id = user.id
    goal = await commit_with_retry(db, lambda: get_current_goal(db, user_id))
    return goal_to_dict(goal)


@router.put("/limit", response_model=GoalResponse)
async def set_goal_limit(
    body: GoalLimitRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
) -> dict:
    user_id = user.id
    goal = await commit_with_retry(db, lambda: update_goal_limit(db, user_id, body.monthly_limit))
    await invalidate_dashboard(redis, user_id)
    return goal_to_dict(goal)


@router.get("/history", response_model=GoalHistoryResponse)
async def goal_history(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GoalHistoryResponse:
    goals = await get_goal_history(db, user.id)
    return GoalHistoryResponse(goals=[GoalResponse(**goal_to_dict(g)) for g in goals])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
) -> dict:
    """Goal, today, monthly breakdown and month-over-month comparison (cached briefly)."""
    user_id = user.id
    snapshot = await commit_with_retry(db, lambda: get_dashboard_snapshot(db, redis, user_id))
    return snapshot
