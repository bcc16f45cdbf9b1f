"""Integration tests for user creation and row locking."""

import pytest

from ecotrack.errors import NotFoundError, ValidationError
from ecotrack.users.service import create_user, get_user_by_id, lock_user


@pytest.mark.asyncio
async def test_create_user_defaults(db_session):
    user = await create_user(db_session, "  Ada  ", "Ada@Example.com")
    await db_session.commit()

    assert user.name == "Ada"
    assert user.email == "ada@example.com"
    assert user.monthly_limit == 500.0
    assert user.streak_current == 0
    assert user.badges == []
    assert user.tokens == 0.0
    assert user.last_reward_claim_date is None


@pytest.mark.asyncio
@pytest.mark.parametrize(("name", "email", "field"), [
    ("", "a@example.com", "name"),
    ("x" * 51, "a@example.com", "name"),
    ("Ada", "not-an-email", "email"),
])
async def test_create_user_validation(db_session, name, email, field):
    with pytest.raises(ValidationError) as exc_info:
        await create_user(db_session, name, email)
    assert exc_info.value.field == field


@pytest.mark.asyncio
async def test_lock_user(db_session, user):
    locked = await lock_user(db_session, user.id)
    assert locked.id == user.id
    assert await get_user_by_id(db_session, 777) is None
    with pytest.raises(NotFoundError):
        await lock_user(db_session, 777)
