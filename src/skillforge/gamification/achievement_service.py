"""Achievement awarding with duplicate prevention and XP rewards."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillforge.db.models import UserAchievement
from skillforge.events import publish_event
from skillforge.gamification.achievements import (
    ACHIEVEMENT_CATALOG,
    AchievementDefinition,
    evaluate,
)
from skillforge.gamification.xp_service import flush_gamification, grant_xp
from skillforge.practice.history import get_user_stats

logger = logging.getLogger(__name__)


async def list_earned(db: AsyncSession, user_id: int) -> list[UserAchievement]:
    """Earned achievements for a user, oldest first."""
    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.earned_at.asc(), UserAchievement.id.asc())
    )
    return list(result.scalars().all())


async def get_earned_ids(db: AsyncSession, user_id: int) -> set[str]:
    result = await db.execute(
        select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    )
    return set(result.scalars().all())


async def evaluate_achievements(
    db: AsyncSession,
    redis: object,
    user_id: int,
    catalog: Sequence[AchievementDefinition] = ACHIEVEMENT_CATALOG,
) -> list[UserAchievement]:
    """Award every achievement the user's current stats satisfy.

    Achievement XP can cause a level-up that satisfies a level achievement, so
    evaluation repeats until nothing new is earned. Commits on success.
    Returns the newly earned rows in award order.
    """
    newly_earned: list[UserAchievement] = []

    for _ in range(len(catalog)):
        stats = await get_user_stats(db, user_id)
        pending = evaluate(catalog, stats, await get_earned_ids(db, user_id))
        if not pending:
            break
        for achievement in pending:
            newly_earned.append(await _award(db, redis, user_id, achievement))

    await db.commit()
    return newly_earned


async def _award(
    db: AsyncSession,
    redis: object,
    user_id: int,
    achievement: AchievementDefinition,
) -> UserAchievement:
    """Insert the earned row and grant its XP reward.

    A concurrent award of the same achievement hits the unique constraint and
    surfaces as ``ConcurrencyConflictError``.
    """
    now = datetime.now(timezone.utc)
    earned = UserAchievement(
        user_id=user_id,
        achievement_id=achievement.id,
        xp_reward=achievement.xp_reward,
        earned_at=now,
    )
    db.add(earned)
    await flush_gamification(db)

    await grant_xp(
        db, redis, user_id, achievement.xp_reward,
        source="achievement",
        source_id=achievement.id,
        description=f'Earned achievement: "{achievement.title or achievement.id}"',
        idempotency_key=f"achievement:{achievement.id}:{user_id}",
    )

    logger.info("User %d earned achievement %s", user_id, achievement.id)
    await publish_event(redis, "achievement_earned", {
        "user_id": user_id,
        "achievement_id": achievement.id,
        "title": achievement.title,
        "xp_reward": achievement.xp_reward,
    })
    return earned
