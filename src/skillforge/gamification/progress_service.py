"""Post-event progress pipeline: streak activity, then achievement checks.

Both steps are retried on ``ConcurrencyConflictError``; each retry re-reads
fresh state, which is what makes it safe.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from skillforge.config import get_settings
from skillforge.db.models import UserAchievement
from skillforge.exceptions import ConcurrencyConflictError
from skillforge.gamification.achievement_service import evaluate_achievements
from skillforge.gamification.streak_service import ActivityOutcome, record_activity
from skillforge.retry import retry_async


@dataclass(frozen=True)
class ProgressUpdate:
    activity: ActivityOutcome
    new_achievements: list[UserAchievement]


async def record_activity_with_retry(
    db: AsyncSession,
    redis: object,
    user_id: int,
    now: datetime | None = None,
    idempotency_key: str | None = None,
) -> ActivityOutcome:
    settings = get_settings()
    return await retry_async(
        lambda: record_activity(db, redis, user_id, now=now, idempotency_key=idempotency_key),
        retry_on=ConcurrencyConflictError,
        attempts=settings.activity_retry_attempts,
        backoff_seconds=settings.activity_retry_backoff_seconds,
    )


async def evaluate_achievements_with_retry(
    db: AsyncSession,
    redis: object,
    user_id: int,
) -> list[UserAchievement]:
    settings = get_settings()
    return await retry_async(
        lambda: evaluate_achievements(db, redis, user_id),
        retry_on=ConcurrencyConflictError,
        attempts=settings.activity_retry_attempts,
        backoff_seconds=settings.activity_retry_backoff_seconds,
    )


async def apply_activity(
    db: AsyncSession,
    redis: object,
    user_id: int,
    now: datetime | None = None,
    idempotency_key: str | None = None,
) -> ProgressUpdate:
    """Record a qualifying activity and award any achievements it unlocks."""
    activity = await record_activity_with_retry(db, redis, user_id, now=now, idempotency_key=idempotency_key)
    new_achievements = await evaluate_achievements_with_retry(db, redis, user_id)
    return ProgressUpdate(activity=activity, new_achievements=new_achievements)
