"""Daily logging streaks and streak badges.

The streak advances at most once per calendar day. The transition itself
is the pure advance_streak(); apply_streak() writes the result onto the
user row and fans out notifications.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from ecotrack.db.models import User
from ecotrack.periods import days_between, to_calendar_date

logger = logging.getLogger(__name__)

# --- Streak badge thresholds ---
STREAK_BADGE_MAP = {
    7: "7-day-streak",
    30: "30-day-streak",
    100: "100-day-streak",
}


@dataclass(frozen=True)
class StreakState:
    current: int = 0
    longest: int = 0
    last_log_date: date | None = None
    badges: tuple[str, ...] = ()


@dataclass(frozen=True)
class StreakTransition:
    state: StreakState
    advanced: bool = False
    reset: bool = False
    new_badges: tuple[str, ...] = field(default_factory=tuple)


def unlocked_badges(current: int, badges: tuple[str, ...]) -> tuple[str, ...]:
    """Badges whose threshold current has reached and that are not held yet."""
    return tuple(
        slug
        for threshold, slug in sorted(STREAK_BADGE_MAP.items())
        if current >= threshold and slug not in badges
    )


def advance_streak(state: StreakState, activity_date: date | datetime) -> StreakTransition:
    """Apply one logged activity to a streak.

    First log starts at 1. Same day or an earlier (backdated) day changes
    nothing. The next calendar day adds 1. A gap of two or more days
    restarts at 1. longest and badges never go down.
    """
    day = to_calendar_date(activity_date)
    last = state.last_log_date

    reset = False
    if last is None:
        current = 1
    else:
        gap = days_between(day, last)
        if gap <= 0:
            return StreakTransition(state=state)
        if gap == 1:
            current = state.current + 1
        else:
            current = 1
            reset = state.current > 0

    new_badges = unlocked_badges(current, state.badges)
    next_state = StreakState(
        current=current,
        longest=max(state.longest, current),
        last_log_date=day,
        badges=state.badges + new_badges,
    )
    return StreakTransition(state=next_state, advanced=True, reset=reset, new_badges=new_badges)


def streak_state_of(user: User) -> StreakState:
    return StreakState(
        current=user.streak_current or 0,
        longest=user.streak_longest or 0,
        last_log_date=user.streak_last_log_date,
        badges=tuple(user.badges or ()),
    )


async def apply_streak(
    redis: object,
    user: User,
    activity_date: date | datetime,
) -> StreakTransition:
    """Advance the user's streak for a newly created activity.

    Caller holds the user row lock and flushes afterwards.
    """
    transition = advance_streak(streak_state_of(user), activity_date)
    if not transition.advanced:
        return transition

    state = transition.state
    user.streak_current = state.current
    user.streak_longest = state.longest
    user.streak_last_log_date = state.last_log_date
    # new list so the JSON column is marked dirty
    user.badges = list(state.badges)

    logger.info(
        "Streak advanced for user %s: current=%d longest=%d", user.id, state.current, state.longest,
    )
    await _publish(redis, "pubsub:streak_update", {
        "user_id": user.id,
        "event": "streak_reset" if transition.reset else "streak_advanced",
        "current": state.current,
        "longest": state.longest,
    })
    for slug in transition.new_badges:
        logger.info("Badge unlocked for user %s: %s", user.id, slug)
        await _publish(redis, "pubsub:badge_earned", {"user_id": user.id, "badge_slug": slug})

    return transition


def streak_to_dict(user: User) -> dict:
    return {
        "current": user.streak_current or 0,
        "longest": user.streak_longest or 0,
        "last_log_date": user.streak_last_log_date,
        "badges": list(user.badges or []),
    }


async def _publish(redis: object, channel: str, payload: dict) -> None:
    """Best-effort pub/sub; a dead Redis never fails the write."""
    if redis is None:
        return
    try:
        await redis.publish(channel, json.dumps(payload))  # type: ignore[union-attr]
    except Exception:
        logger.warning("Failed to publish %s", channel, exc_info=True)
