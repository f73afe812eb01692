"""Practice history queries and the cumulative statistics achievements run on."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillforge.db.models import Photo, PracticeSession
from skillforge.gamification.achievements import UserStats
from skillforge.gamification.xp_service import get_gamification


async def list_sessions(
    db: AsyncSession,
    user_id: int,
    limit: int = 50,
    offset: int = 0,
) -> list[PracticeSession]:
    """Completed sessions for a user, most recent first."""
    result = await db.execute(
        select(PracticeSession)
        .where(PracticeSession.user_id == user_id)
        .order_by(PracticeSession.ended_at.desc(), PracticeSession.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def count_sessions(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(PracticeSession.id)).where(PracticeSession.user_id == user_id)
    )
    return int(result.scalar_one())


async def total_practice_minutes(db: AsyncSession, user_id: int) -> float:
    result = await db.execute(
        select(func.coalesce(func.sum(PracticeSession.duration_minutes), 0.0))
        .where(PracticeSession.user_id == user_id)
    )
    return float(result.scalar_one())


async def count_photos(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(Photo.id)).where(Photo.owner_id == user_id)
    )
    return int(result.scalar_one())


async def get_user_stats(db: AsyncSession, user_id: int) -> UserStats:
    """Assemble the statistics snapshot used by achievement evaluation."""
    gam = await get_gamification(db, user_id)
    return UserStats(
        current_streak=gam.current_streak if gam else 0,
        best_streak=gam.best_streak if gam else 0,
        level=gam.level if gam else 1,
        sessions=await count_sessions(db, user_id),
        photos=await count_photos(db, user_id),
        practice_minutes=await total_practice_minutes(db, user_id),
    )
