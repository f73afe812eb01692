"""XP service tests — ledger, idempotency and level-up detection."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select

from skillforge.db.models import XPLedger
from skillforge.exceptions import InvalidArgumentError
from skillforge.gamification.xp_service import get_or_create_gamification, grant_xp


class TestGetOrCreateGamification:
    @pytest.mark.asyncio
    async def test_creates_new_record(self, db_session, user):
        gam = await get_or_create_gamification(db_session, user.id)
        assert gam.user_id == user.id
        assert gam.xp == 0
        assert gam.level == 1
        assert gam.coins == 0
        assert gam.current_streak == 0
        assert gam.version == 1

    @pytest.mark.asyncio
    async def test_returns_existing_record(self, db_session, user):
        first = await get_or_create_gamification(db_session, user.id)
        await db_session.commit()
        second = await get_or_create_gamification(db_session, user.id)
        assert first is second


class TestGrantXP:
    @pytest.mark.asyncio
    async def test_grant_updates_state_and_ledger(self, db_session, user):
        grant = await grant_xp(db_session, None, user.id, 40, source="manual", description="bonus")
        await db_session.commit()

        assert grant.granted is True
        assert grant.amount == 40
        assert grant.xp_state.xp == 40

        rows = (await db_session.execute(select(XPLedger))).scalars().all()
        assert [(r.amount, r.source, r.description) for r in rows] == [(40, "manual", "bonus")]

    @pytest.mark.asyncio
    async def test_level_up_adds_coins(self, db_session, user):
        await grant_xp(db_session, None, user.id, 95, source="manual")
        grant = await grant_xp(db_session, None, user.id, 10, source="manual")

        assert grant.levels_gained == 1
        assert (grant.xp_state.xp, grant.xp_state.level, grant.xp_state.coins) == (5, 2, 10)
        gam = await get_or_create_gamification(db_session, user.id)
        assert gam.total_xp == 105

    @pytest.mark.asyncio
    async def test_coins_granted_alongside_xp(self, db_session, user):
        grant = await grant_xp(db_session, None, user.id, 5, source="session", coins=3)
        assert grant.xp_state.coins == 3

    @pytest.mark.asyncio
    async def test_idempotency_key_prevents_double_grant(self, db_session, user):
        first = await grant_xp(db_session, None, user.id, 50, source="manual", idempotency_key="k-1")
        await db_session.commit()
        second = await grant_xp(db_session, None, user.id, 50, source="manual", idempotency_key="k-1")

        assert first.granted is True
        assert second.granted is False
        assert second.xp_state.xp == 50
        count = (await db_session.execute(select(func.count(XPLedger.id)))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_negative_amount_rejected_before_write(self, db_session, user):
        with pytest.raises(InvalidArgumentError):
            await grant_xp(db_session, None, user.id, -10, source="manual")

        count = (await db_session.execute(select(func.count(XPLedger.id)))).scalar_one()
        assert count == 0

    @pytest.mark.asyncio
    async def test_level_up_published(self, db_session, user):
        redis = MagicMock()
        redis.publish = AsyncMock(return_value=1)

        await grant_xp(db_session, redis, user.id, 350, source="manual")

        channel, body = redis.publish.await_args.args
        assert channel == "pubsub:level_up"
        assert json.loads(body) == {
            "user_id": user.id,
            "old_level": 1,
            "new_level": 3,
            "levels_gained": 2,
        }
