"""Completing practice sessions: persist, reward, then run the progress pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from skillforge.config import get_settings
from skillforge.db.models import PracticeSession
from skillforge.exceptions import ConcurrencyConflictError
from skillforge.gamification.leveling import session_rewards
from skillforge.gamification.progress_service import ProgressUpdate, apply_activity
from skillforge.gamification.streak_engine import as_utc
from skillforge.gamification.xp_service import XPGrant, grant_xp
from skillforge.photos.service import get_owned_photo
from skillforge.retry import retry_async

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletedSession:
    session: PracticeSession
    reward: XPGrant
    progress: ProgressUpdate


async def complete_session(
    db: AsyncSession,
    redis: object,
    user_id: int,
    skill: str,
    duration_seconds: float,
    started_at: datetime | None = None,
    category: str = "general",
    priority: str = "medium",
    photo_id: str | None = None,
    now: datetime | None = None,
) -> CompletedSession:
    """Record a finished practice session and award its XP and coins.

    The session reward is separate from the streak XP awarded by the
    activity that follows. The session row and its reward are written in one
    transaction, retried as a whole if the user's progress changed meanwhile.
    """
    now = as_utc(now or datetime.now(timezone.utc))
    if photo_id is not None and await get_owned_photo(db, user_id, photo_id) is None:
        photo_id = None

    settings = get_settings()
    xp, coins = session_rewards(duration_seconds)

    async def _record() -> tuple[PracticeSession, XPGrant]:
        # A conflict rolls back the whole transaction, session row included
        row = PracticeSession(
            user_id=user_id,
            skill=skill,
            category=category,
            priority=priority,
            duration_minutes=duration_seconds / 60,
            started_at=as_utc(started_at) if started_at else now - timedelta(seconds=duration_seconds),
            ended_at=now,
            xp_earned=xp,
            coins_earned=coins,
            photo_id=photo_id,
        )
        db.add(row)
        await db.flush()

        grant = await grant_xp(
            db, redis, user_id, xp,
            source="session",
            source_id=str(row.id),
            description=f"Practice session: {skill}",
            idempotency_key=f"session:{row.id}",
            coins=coins,
        )
        await db.commit()
        return row, grant

    session, reward = await retry_async(
        _record,
        retry_on=ConcurrencyConflictError,
        attempts=settings.activity_retry_attempts,
        backoff_seconds=settings.activity_retry_backoff_seconds,
    )
    logger.info("User %d completed %s (%.1f min, +%d XP, +%d coins)", user_id, skill, duration_seconds / 60, xp, coins)

    progress = await apply_activity(
        db, redis, user_id, now=now, idempotency_key=f"activity:session:{session.id}"
    )
    # A retried conflict rolls the session back, which expires loaded rows
    await db.refresh(session)
    return CompletedSession(session=session, reward=reward, progress=progress)
