"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ecotrack.activities.router import router as activities_router
from ecotrack.config import get_settings
from ecotrack.database import close_db, create_all, init_db
from ecotrack.emissions.router import router as emissions_router
from ecotrack.gamification.router import router as gamification_router
from ecotrack.goals.router import router as goals_router
from ecotrack.health.router import router as health_router
from ecotrack.middleware import setup_middleware
from ecotrack.redis_client import close_redis, init_redis
from ecotrack.reports.router import router as reports_router
from ecotrack.rewards.router import router as rewards_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.database_url.startswith("sqlite"):
        # No migrations for local SQLite runs
        await create_all()
    if settings.redis_url:
        await init_redis(settings.redis_url)
    else:
        logger.warning("Redis disabled: no cache, rate limiting or notifications")

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="EcoTrack API",
        description="Personal carbon footprint tracking with monthly goals, streaks and token rewards",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(emissions_router)
    app.include_router(activities_router)
    app.include_router(goals_router)
    app.include_router(gamification_router)
    app.include_router(rewards_router)
    app.include_router(reports_router)

    return app


app = create_app()
