"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from skillforge.config import get_settings
from skillforge.database import close_db, init_db
from skillforge.gamification.router import router as gamification_router
from skillforge.health.router import router as health_router
from skillforge.middleware import setup_middleware
from skillforge.photos.router import router as photos_router
from skillforge.photos.storage import PUBLIC_PREFIX, get_photo_storage
from skillforge.practice.router import router as practice_router
from skillforge.redis_client import close_redis, init_redis


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, settings.redis_max_connections)
    get_photo_storage().upload_dir.mkdir(parents=True, exist_ok=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SkillForge API",
        description="Streaks, XP, achievements and practice photos for SkillForge",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(gamification_router)
    app.include_router(photos_router)
    app.include_router(practice_router)
    app.mount(
        PUBLIC_PREFIX,
        StaticFiles(directory=get_photo_storage().upload_dir, check_dir=False),
        name="photos",
    )

    return app


app = create_app()
