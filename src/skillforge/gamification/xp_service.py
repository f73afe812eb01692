"""XP grant service with idempotency and level-up detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from skillforge.db.models import UserGamification, XPLedger
from skillforge.events import publish_event
from skillforge.exceptions import ConcurrencyConflictError
from skillforge.gamification.leveling import XPState, award_coins, award_xp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class XPGrant:
    granted: bool
    xp_state: XPState
    levels_gained: int = 0
    amount: int = 0


def xp_state_of(gam: UserGamification) -> XPState:
    return XPState(xp=gam.xp, level=gam.level, coins=gam.coins)


async def flush_gamification(db: AsyncSession) -> None:
    """Flush pending writes, turning lost races into ``ConcurrencyConflictError``.

    The session is rolled back before raising so the caller can re-read and retry.
    """
    try:
        await db.flush()
    except (StaleDataError, IntegrityError) as exc:
        await db.rollback()
        msg = "Gamification state changed concurrently"
        raise ConcurrencyConflictError(msg) from exc


async def get_gamification(db: AsyncSession, user_id: int) -> UserGamification | None:
    result = await db.execute(
        select(UserGamification).where(UserGamification.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_gamification(db: AsyncSession, user_id: int) -> UserGamification:
    """Get or create the gamification row for a user."""
    gam = await get_gamification(db, user_id)
    if gam is None:
        gam = UserGamification(
            user_id=user_id,
            current_streak=0,
            best_streak=0,
            xp=0,
            level=1,
            coins=0,
            total_xp=0,
            updated_at=datetime.now(timezone.utc),
        )
        db.add(gam)
        await flush_gamification(db)
    return gam


async def has_idempotency_key(db: AsyncSession, idempotency_key: str) -> bool:
    existing = await db.execute(
        select(XPLedger.id).where(XPLedger.idempotency_key == idempotency_key)
    )
    return existing.scalar_one_or_none() is not None


async def grant_xp(
    db: AsyncSession,
    redis: object,
    user_id: int,
    amount: int,
    source: str,
    source_id: str | None = None,
    description: str | None = None,
    idempotency_key: str | None = None,
    coins: int = 0,
) -> XPGrant:
    """Grant XP (and optionally coins) to a user.

    Does not commit. Returns ``granted=False`` when ``idempotency_key`` was
    already used. After granting:
    1. Insert into xp_ledger
    2. Apply XP to user_gamification, levelling up as needed
    3. If levels were gained, broadcast level_up
    """
    gam = await get_or_create_gamification(db, user_id)

    if idempotency_key is not None and await has_idempotency_key(db, idempotency_key):
        logger.info("Skipping duplicate XP grant %s for user %d", idempotency_key, user_id)
        return XPGrant(granted=False, xp_state=xp_state_of(gam))

    # Validates the amounts before anything is written
    old_state = xp_state_of(gam)
    new_state, levels_gained = award_xp(old_state, amount)
    new_state = award_coins(new_state, coins)

    now = datetime.now(timezone.utc)
    db.add(XPLedger(
        user_id=user_id,
        amount=amount,
        coins=coins,
        source=source,
        source_id=source_id,
        description=description,
        idempotency_key=idempotency_key,
        created_at=now,
    ))

    gam.xp = new_state.xp
    gam.level = new_state.level
    gam.coins = new_state.coins
    gam.total_xp += amount
    gam.updated_at = now

    await flush_gamification(db)

    if levels_gained:
        logger.info("User %d levelled up %d -> %d", user_id, old_state.level, new_state.level)
        await publish_event(redis, "level_up", {
            "user_id": user_id,
            "old_level": old_state.level,
            "new_level": new_state.level,
            "levels_gained": levels_gained,
        })

    return XPGrant(granted=True, xp_state=new_state, levels_gained=levels_gained, amount=amount)
