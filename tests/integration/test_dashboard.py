"""Integration tests for the dashboard snapshot and its Redis cache."""

from __future__ import annotations

import json
from datetime import date
from unittest.mock import AsyncMock

import pytest

from ecotrack.activities.service import log_activity
from ecotrack.dashboard.service import DASHBOARD_CACHE_KEY, get_dashboard_snapshot, invalidate_dashboard
from ecotrack.errors import NotFoundError

MARCH_10 = date(2026, 3, 10)


@pytest.mark.asyncio
async def test_snapshot_shape(db_session, user):
    await log_activity(db_session, None, user.id, "transport", "petrol", 10, "km", activity_date=MARCH_10)
    await log_activity(db_session, None, user.id, "food", "vegan", 3, "days", activity_date=date(2026, 3, 2))
    await db_session.commit()

    snapshot = await get_dashboard_snapshot(db_session, None, user.id, today=MARCH_10)
    await db_session.commit()

    assert snapshot["goal"]["month"] == 3
    assert snapshot["today"] == {"total": 2.1, "daily_limit": 17, "percentage": 12}
    assert snapshot["monthly"]["transport"] == 2.1
    assert snapshot["monthly"]["food"] == 8.67
    assert snapshot["monthly"]["total"] == pytest.approx(10.77)
    assert snapshot["streak"]["current"] == 1


@pytest.mark.asyncio
async def test_month_over_month_comparison(db_session, user):
    await log_activity(db_session, None, user.id, "goods", "clothing", 200, "USD", activity_date=date(2026, 2, 10))
    await log_activity(db_session, None, user.id, "goods", "clothing", 150, "USD", activity_date=date(2026, 3, 1))
    await db_session.commit()

    snapshot = await get_dashboard_snapshot(db_session, None, user.id, today=MARCH_10)
    assert snapshot["comparison"] == {"previous_total": 100.0, "percentage": -25, "label": "decrease"}


@pytest.mark.asyncio
async def test_no_previous_month_reads_as_zero_increase(db_session, user):
    await log_activity(db_session, None, user.id, "goods", "clothing", 10, "USD", activity_date=MARCH_10)
    snapshot = await get_dashboard_snapshot(db_session, None, user.id, today=MARCH_10)
    assert snapshot["comparison"]["percentage"] == 0
    assert snapshot["comparison"]["label"] == "increase"


@pytest.mark.asyncio
async def test_cached_snapshot_returned(db_session, user):
    cached = {"goal": {"id": 1}, "cached": True}
    redis = AsyncMock()
    redis.get.return_value = json.dumps(cached)

    snapshot = await get_dashboard_snapshot(db_session, redis, user.id)

    assert snapshot == cached
    redis.get.assert_awaited_once_with(DASHBOARD_CACHE_KEY.format(user_id=user.id))


@pytest.mark.asyncio
async def test_cache_miss_stores_snapshot(db_session, user):
    redis = AsyncMock()
    redis.get.return_value = None

    await get_dashboard_snapshot(db_session, redis, user.id)

    redis.setex.assert_awaited_once()
    key, ttl, _payload = redis.setex.await_args.args
    assert key == DASHBOARD_CACHE_KEY.format(user_id=user.id)
    assert ttl == 10


@pytest.mark.asyncio
async def test_cache_errors_fall_through(db_session, user):
    redis = AsyncMock()
    redis.get.side_effect = ConnectionError("redis down")
    redis.setex.side_effect = ConnectionError("redis down")

    snapshot = await get_dashboard_snapshot(db_session, redis, user.id)
    assert "goal" in snapshot


@pytest.mark.asyncio
async def test_activity_write_invalidates(db_session, user):
    redis = AsyncMock()
    await log_activity(db_session, redis, user.id, "goods", "clothing", 10, "USD", activity_date=MARCH_10)
    redis.delete.assert_awaited_with(DASHBOARD_CACHE_KEY.format(user_id=user.id))


@pytest.mark.asyncio
async def test_invalidate_without_redis_is_noop():
    await invalidate_dashboard(None, 1)


@pytest.mark.asyncio
async def test_unknown_user(db_session):
    with pytest.raises(NotFoundError):
        await get_dashboard_snapshot(db_session, None, 4242, today=MARCH_10)
