"""Streak tracking: applies daily streak rules to the persisted user state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from skillforge.db.models import UserGamification
from skillforge.events import publish_event
from skillforge.gamification.leveling import XPState
from skillforge.gamification.streak_engine import (
    ActivityKind,
    StreakState,
    as_utc,
    record_activity as apply_streak_rules,
)
from skillforge.gamification.xp_service import (
    flush_gamification,
    get_or_create_gamification,
    grant_xp,
    has_idempotency_key,
    xp_state_of,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityOutcome:
    streak: StreakState
    kind: ActivityKind | None
    xp_awarded: int
    xp_state: XPState
    levels_gained: int = 0
    duplicate: bool = False


def streak_state_of(gam: UserGamification) -> StreakState:
    return StreakState(
        current_streak=gam.current_streak,
        best_streak=gam.best_streak,
        last_activity_at=as_utc(gam.last_activity_at) if gam.last_activity_at else None,
    )


_XP_DESCRIPTIONS = {
    ActivityKind.FIRST: "First practice activity",
    ActivityKind.SAME_DAY: "Additional activity today",
    ActivityKind.CONTINUED: "Streak continued",
    ActivityKind.RESET: "New streak started",
}


async def record_activity(
    db: AsyncSession,
    redis: object,
    user_id: int,
    now: datetime | None = None,
    idempotency_key: str | None = None,
) -> ActivityOutcome:
    """Record one qualifying activity for a user and award its streak XP.

    Commits on success. The gamification row is version-checked, so a
    concurrent update for the same user raises ``ConcurrencyConflictError``
    (session already rolled back); retry the whole call.

    Without an ``idempotency_key`` a retried call after an unacknowledged
    success counts the activity twice.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = as_utc(now)

    gam = await get_or_create_gamification(db, user_id)

    if idempotency_key is not None and await has_idempotency_key(db, idempotency_key):
        logger.info("Activity %s already recorded for user %d", idempotency_key, user_id)
        return ActivityOutcome(
            streak=streak_state_of(gam),
            kind=None,
            xp_awarded=0,
            xp_state=xp_state_of(gam),
            duplicate=True,
        )

    previous = streak_state_of(gam)
    result = apply_streak_rules(previous, now)

    if result.persist_streak:
        gam.current_streak = result.state.current_streak
        gam.best_streak = result.state.best_streak
        gam.last_activity_at = result.state.last_activity_at
        gam.updated_at = now
        await flush_gamification(db)

    grant = await grant_xp(
        db, redis, user_id, result.xp_awarded,
        source="streak",
        source_id=result.kind.value,
        description=_XP_DESCRIPTIONS[result.kind],
        idempotency_key=idempotency_key,
    )

    await db.commit()

    logger.info(
        "Activity for user %d: %s, streak %d -> %d, +%d XP",
        user_id, result.kind.value, previous.current_streak,
        result.state.current_streak, result.xp_awarded,
    )
    await _emit_streak_update(redis, user_id, previous, result.state, result.kind)

    return ActivityOutcome(
        streak=result.state,
        kind=result.kind,
        xp_awarded=result.xp_awarded,
        xp_state=grant.xp_state,
        levels_gained=grant.levels_gained,
    )


async def _emit_streak_update(
    redis: object,
    user_id: int,
    previous: StreakState,
    current: StreakState,
    kind: ActivityKind,
) -> None:
    """Broadcast streak changes. Same-day activity is not broadcast."""
    if kind is ActivityKind.SAME_DAY:
        return
    payload: dict[str, object] = {
        "user_id": user_id,
        "event": "streak_extended" if kind is ActivityKind.CONTINUED else "streak_started",
        "current_streak": current.current_streak,
        "best_streak": current.best_streak,
    }
    if kind is ActivityKind.RESET:
        payload["event"] = "streak_broken"
        payload["streak_length"] = previous.current_streak
    await publish_event(redis, "streak_update", payload)
