"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ilab.config import get_settings
from ilab.database import close_db, get_session, init_db
from ilab.gamification.router import router as gamification_router
from ilab.gamification.seed import seed_badges
from ilab.health.router import router as health_router
from ilab.judging.router import router as judging_router
from ilab.middleware import setup_middleware
from ilab.redis_client import close_redis, init_redis
from ilab.stores import Stores
from ilab.teams.router import router as teams_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    if settings.seed_badges_on_startup:
        try:
            async for db in get_session():
                await seed_badges(Stores(db))
                break
        except Exception:
            logger.warning("Badge seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Innovation Lab Engine",
        description="Gamification, judging and ranking engine for the Innovation Lab hackathon platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(gamification_router)
    app.include_router(judging_router)
    app.include_router(teams_router)

    return app


app = create_app()
