"""Integration tests for monthly goals."""

from __future__ import annotations

from datetime import date

import pytest

from ecotrack.activities.service import log_activity
from ecotrack.errors import ValidationError
from ecotrack.goals.service import (
    get_current_goal,
    get_goal_history,
    get_or_create_goal,
    recompute_goal,
    update_goal_limit,
)

MARCH_1 = date(2026, 3, 1)


@pytest.mark.asyncio
async def test_current_goal_created_with_defaults(db_session, user):
    goal = await get_current_goal(db_session, user.id, today=MARCH_1)
    await db_session.commit()

    assert (goal.month, goal.year) == (3, 2026)
    assert goal.monthly_limit == 500.0
    assert goal.daily_limit == 17
    assert goal.current_total == 0.0
    assert goal.status == "within"


@pytest.mark.asyncio
async def test_get_or_create_is_idempotent(db_session, user):
    first = await get_or_create_goal(db_session, user.id, 3, 2026)
    second = await get_or_create_goal(db_session, user.id, 3, 2026)
    await db_session.commit()
    assert first.id == second.id


@pytest.mark.asyncio
async def test_status_follows_usage(db_session, user):
    await update_goal_limit(db_session, user.id, 100.0, today=MARCH_1)

    await log_activity(db_session, None, user.id, "goods", "clothing", 158, "USD", activity_date=date(2026, 3, 2))
    goal = await get_current_goal(db_session, user.id, today=MARCH_1)
    assert goal.current_total == 79.0
    assert goal.status == "within"

    await log_activity(db_session, None, user.id, "goods", "clothing", 2, "USD", activity_date=date(2026, 3, 3))
    assert goal.current_total == 80.0
    assert goal.status == "warning"

    await log_activity(db_session, None, user.id, "goods", "clothing", 40, "USD", activity_date=date(2026, 3, 4))
    assert goal.current_total == 100.0
    assert goal.status == "exceeded"
    await db_session.commit()


@pytest.mark.asyncio
async def test_scenario_410_of_500_is_warning(db_session, user):
    await log_activity(db_session, None, user.id, "goods", "clothing", 820, "USD", activity_date=date(2026, 3, 2))
    goal = await recompute_goal(db_session, user.id, 3, 2026)
    await db_session.commit()
    assert goal.current_total == 410.0
    assert goal.status == "warning"


@pytest.mark.asyncio
async def test_limit_update_rederives_daily_limit_and_status(db_session, user):
    await log_activity(db_session, None, user.id, "goods", "clothing", 200, "USD", activity_date=date(2026, 3, 2))
    goal = await update_goal_limit(db_session, user.id, 90.0, today=MARCH_1)
    await db_session.commit()

    assert goal.monthly_limit == 90.0
    assert goal.daily_limit == 3
    assert goal.status == "exceeded"


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", [0, -5, float("nan"), float("inf"), True, "100"])
async def test_limit_update_rejects_bad_values(db_session, user, bad):
    with pytest.raises(ValidationError) as exc_info:
        await update_goal_limit(db_session, user.id, bad, today=MARCH_1)
    assert exc_info.value.field == "monthly_limit"


@pytest.mark.asyncio
async def test_history_newest_first(db_session, user):
    for month, year in [(11, 2025), (1, 2026), (12, 2025), (2, 2026)]:
        await get_or_create_goal(db_session, user.id, month, year)
    await db_session.commit()

    history = await get_goal_history(db_session, user.id)
    assert [(g.month, g.year) for g in history] == [(2, 2026), (1, 2026), (12, 2025), (11, 2025)]

    limited = await get_goal_history(db_session, user.id, limit=2)
    assert len(limited) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("monthly_limit", "usd", "current_total", "status"),
    [
        (1.37, 2.74, 1.37, "exceeded"),
        (2.9, 5.8, 2.9, "exceeded"),
        (2.9, 4.64, 2.32, "warning"),
        (0.7, 1.12, 0.56, "warning"),
    ],
)
async def test_recompute_lands_on_boundary_for_uneven_limits(
    db_session, user, monthly_limit, usd, current_total, status,
):
    await update_goal_limit(db_session, user.id, monthly_limit, today=MARCH_1)
    await log_activity(db_session, None, user.id, "goods", "clothing", usd, "USD", activity_date=date(2026, 3, 2))

    goal = await recompute_goal(db_session, user.id, 3, 2026)
    await db_session.commit()

    assert goal.current_total == current_total
    assert goal.status == status
