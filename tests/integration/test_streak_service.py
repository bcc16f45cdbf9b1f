"""Integration tests for applying streaks to users, including pub/sub fan-out."""

from __future__ import annotations

import json
from datetime import date
from unittest.mock import AsyncMock

import pytest

from ecotrack.activities.service import log_activity
from ecotrack.gamification.streak_service import apply_streak, streak_to_dict


@pytest.mark.asyncio
async def test_publishes_streak_update(db_session, user):
    redis = AsyncMock()
    await apply_streak(redis, user, date(2026, 3, 1))

    redis.publish.assert_awaited_once()
    channel, raw = redis.publish.await_args.args
    assert channel == "pubsub:streak_update"
    payload = json.loads(raw)
    assert payload == {"user_id": user.id, "event": "streak_advanced", "current": 1, "longest": 1}


@pytest.mark.asyncio
async def test_badge_unlock_published(db_session, user):
    user.streak_current = 6
    user.streak_longest = 6
    user.streak_last_log_date = date(2026, 3, 6)
    redis = AsyncMock()

    transition = await apply_streak(redis, user, date(2026, 3, 7))
    await db_session.commit()

    assert transition.new_badges == ("7-day-streak",)
    assert user.badges == ["7-day-streak"]
    channels = [call.args[0] for call in redis.publish.await_args_list]
    assert channels == ["pubsub:streak_update", "pubsub:badge_earned"]
    assert json.loads(redis.publish.await_args_list[1].args[1]) == {
        "user_id": user.id, "badge_slug": "7-day-streak",
    }


@pytest.mark.asyncio
async def test_reset_event_name(db_session, user):
    user.streak_current = 4
    user.streak_longest = 4
    user.streak_last_log_date = date(2026, 3, 1)
    redis = AsyncMock()

    await apply_streak(redis, user, date(2026, 3, 9))

    payload = json.loads(redis.publish.await_args.args[1])
    assert payload["event"] == "streak_reset"
    assert user.streak_current == 1
    assert user.streak_longest == 4


@pytest.mark.asyncio
async def test_same_day_publishes_nothing(db_session, user):
    redis = AsyncMock()
    await apply_streak(redis, user, date(2026, 3, 1))
    redis.publish.reset_mock()

    await apply_streak(redis, user, date(2026, 3, 1))
    redis.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_publish_failure_does_not_fail_write(db_session, user):
    redis = AsyncMock()
    redis.publish.side_effect = ConnectionError("redis down")

    await log_activity(db_session, redis, user.id, "energy", "electricity", 1, "kWh", activity_date=date(2026, 3, 1))
    await db_session.commit()

    assert user.streak_current == 1


@pytest.mark.asyncio
async def test_badges_persist(db_session, user):
    for day in range(1, 8):
        await log_activity(db_session, None, user.id, "energy", "electricity", 1, "kWh", activity_date=date(2026, 3, day))
    await db_session.commit()

    await db_session.refresh(user)
    snapshot = streak_to_dict(user)
    assert snapshot["current"] == 7
    assert snapshot["badges"] == ["7-day-streak"]


@pytest.mark.asyncio
async def test_backdated_log_leaves_streak(db_session, user):
    await log_activity(db_session, None, user.id, "energy", "electricity", 1, "kWh", activity_date=date(2026, 3, 10))
    await log_activity(db_session, None, user.id, "energy", "electricity", 1, "kWh", activity_date=date(2026, 3, 5))
    await db_session.commit()

    assert user.streak_current == 1
    assert user.streak_last_log_date == date(2026, 3, 10)
