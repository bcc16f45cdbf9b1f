"""User lookup and per-user write serialization."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from ecotrack.config import get_settings
from ecotrack.db.models import User
from ecotrack.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by primary key."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    name: str,
    email: str,
    monthly_limit: float | None = None,
) -> User:
    """Create an account row with empty streak and reward state."""
    name = name.strip()
    if not name or len(name) > 50:
        raise ValidationError("Name must be 1-50 characters", field="name")
    email = email.strip().lower()
    if "@" not in email:
        raise ValidationError("Please provide a valid email", field="email")

    user = User(
        name=name,
        email=email,
        monthly_limit=monthly_limit if monthly_limit is not None else get_settings().default_monthly_limit,
        streak_current=0,
        streak_longest=0,
        streak_last_log_date=None,
        badges=[],
        tokens=0.0,
        total_co2_saved=0.0,
        last_reward_claim_date=None,
    )
    db.add(user)
    await db.flush()
    logger.info("user_created", user_id=user.id)
    return user


async def lock_user(db: AsyncSession, user_id: int) -> User:
    """Load the user row FOR UPDATE so writes for one user run one at a time.

    Every goal, streak and reward mutation goes through this first. Rows for
    other users are never touched. populate_existing refreshes an instance
    already sitting in the identity map.

    Raises:
        NotFoundError: no such user.
    """
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user
