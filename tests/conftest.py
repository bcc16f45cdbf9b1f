"""Shared test fixtures.

Every test gets its own SQLite file database (schema from the ORM
metadata) and no Redis, so services run their Redis-less paths.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.config import get_settings
from ecotrack.database import close_db, create_all, get_session, init_db


@pytest.fixture
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    url = f"sqlite+aiosqlite:///{tmp_path / 'ecotrack_test.db'}"
    monkeypatch.setenv("ECOTRACK_DATABASE_URL", url)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_session(database_url: str) -> AsyncGenerator[AsyncSession, None]:
    """A session on a freshly created schema. Commit after setup so API calls see the rows."""
    await init_db(database_url)
    await create_all()
    sessions = get_session()
    session = await sessions.__anext__()
    yield session
    await sessions.aclose()
    await close_db()


@pytest_asyncio.fixture
async def user(db_session: AsyncSession):
    from ecotrack.users.service import create_user

    created = await create_user(db_session, "Test User", "test@example.com")
    await db_session.commit()
    return created


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the ASGI app; shares the database with db_session."""
    from ecotrack.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, user) -> AsyncClient:
    """Client carrying a bearer token for the test user."""
    from ecotrack.auth.jwt import create_access_token

    client.headers["Authorization"] = f"Bearer {create_access_token(user.id)}"
    return client
