"""Reward endpoints: status of the running month and claiming the previous one."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.auth.dependencies import get_current_user
from ecotrack.database import commit_with_retry, get_session
from ecotrack.db.models import User
from ecotrack.redis_client import get_optional_redis
from ecotrack.rewards.schemas import RewardClaimResponse, RewardStatusResponse
from ecotrack.rewards.service import claim_reward, get_reward_status

router = APIRouter(prefix="/api/v1/rewards", tags=["Rewards"])


@router.get("/status", response_model=RewardStatusResponse)
async def reward_status(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    return await get_reward_status(db, user.id)


@router.post("/claim", response_model=RewardClaimResponse)
async def claim(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
) -> dict:
    """Settle last month. A second claim for the same month returns 409."""
    user_id = user.id
    return await commit_with_retry(db, lambda: claim_reward(db, redis, user_id))
