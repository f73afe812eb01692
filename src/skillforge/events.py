"""Best-effort Redis pub/sub broadcasts for gamification events."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


async def publish_event(redis: object, channel: str, payload: dict[str, Any]) -> bool:
    """Publish ``payload`` as JSON on ``pubsub:<channel>``.

    Returns False when Redis is unavailable or publishing fails; the event is
    dropped and the caller carries on.
    """
    if redis is None:
        return False
    try:
        await redis.publish(f"pubsub:{channel}", json.dumps(payload, default=str))  # type: ignore[union-attr]
    except Exception:
        logger.warning("Failed to publish %s event", channel, exc_info=True)
        return False
    return True
