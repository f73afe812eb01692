"""Pub/sub broadcast tests: JSON payloads, missing or failing Redis."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from skillforge.events import publish_event


class TestPublishEvent:
    @pytest.mark.asyncio
    async def test_publishes_json_on_prefixed_channel(self):
        redis = MagicMock()
        redis.publish = AsyncMock(return_value=1)

        assert await publish_event(redis, "level_up", {"user_id": 1, "new_level": 2}) is True

        channel, body = redis.publish.await_args.args
        assert channel == "pubsub:level_up"
        assert json.loads(body) == {"user_id": 1, "new_level": 2}

    @pytest.mark.asyncio
    async def test_no_redis_is_a_no_op(self):
        assert await publish_event(None, "level_up", {"user_id": 1}) is False

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(self):
        redis = MagicMock()
        redis.publish = AsyncMock(side_effect=ConnectionError("redis down"))
        assert await publish_event(redis, "streak_update", {"user_id": 1}) is False
