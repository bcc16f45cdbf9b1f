"""Streak endpoint."""

from fastapi import APIRouter, Depends

from ecotrack.auth.dependencies import get_current_user
from ecotrack.db.models import User
from ecotrack.gamification.streak_service import STREAK_BADGE_MAP, streak_to_dict
from ecotrack.goals.schemas import StreakSnapshot

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


@router.get("/streak", response_model=StreakSnapshot)
async def get_streak(user: User = Depends(get_current_user)) -> dict:
    """Current and longest daily streak plus unlocked badges."""
    return streak_to_dict(user)


@router.get("/streak/badges")
async def list_streak_badges() -> dict[str, list[dict[str, object]]]:
    """Every streak badge and the streak length that unlocks it."""
    return {
        "badges": [
            {"slug": slug, "days_required": days}
            for days, slug in sorted(STREAK_BADGE_MAP.items())
        ]
    }
