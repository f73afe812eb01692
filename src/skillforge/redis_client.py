"""Shared Redis client for rate limiting and event broadcasts."""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int) -> None:
    """Create the shared client. Connections are opened lazily, up to ``max_connections``."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """The shared client; ``init_redis`` must have run (the app lifespan does this)."""
    if _client is None:
        msg = "Redis client not initialized"
        raise RuntimeError(msg)
    return _client
