"""Redis client lifecycle tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from skillforge import redis_client


class TestRedisClient:
    @pytest.mark.asyncio
    async def test_pool_size_comes_from_caller(self, monkeypatch):
        fake = MagicMock()
        fake.aclose = AsyncMock()
        from_url = MagicMock(return_value=fake)
        monkeypatch.setattr(redis_client.redis, "from_url", from_url)

        await redis_client.init_redis("redis://cache:6379/1", max_connections=7)
        try:
            assert redis_client.get_redis() is fake
            assert from_url.call_args.args == ("redis://cache:6379/1",)
            assert from_url.call_args.kwargs["max_connections"] == 7
        finally:
            await redis_client.close_redis()

        fake.aclose.assert_awaited_once()
        with pytest.raises(RuntimeError):
            redis_client.get_redis()

    def test_setting_default(self):
        from skillforge.config import Settings

        assert Settings().redis_max_connections == 50
