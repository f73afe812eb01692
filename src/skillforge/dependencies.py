"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from skillforge.photos.storage import PhotoStorage, get_photo_storage
from skillforge.redis_client import get_redis as _get_redis


async def get_redis_dep() -> AsyncGenerator[object, None]:
    """Yield the Redis client as a FastAPI dependency."""
    yield _get_redis()


def get_storage_dep() -> PhotoStorage:
    """Photo storage rooted at the configured upload directory."""
    return get_photo_storage()
