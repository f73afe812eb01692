"""Achievement awarding tests — stats from history, single award, chained level unlocks."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from skillforge.db.models import PracticeSession, UserAchievement
from skillforge.gamification.achievement_service import (
    evaluate_achievements,
    get_earned_ids,
    list_earned,
)
from skillforge.gamification.achievements import AchievementDefinition, AchievementType
from skillforge.gamification.xp_service import get_or_create_gamification
from skillforge.practice.history import get_user_stats

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


async def _add_sessions(db, user_id: int, count: int, minutes: float = 10) -> None:
    for i in range(count):
        ended = T0 + timedelta(hours=i)
        db.add(PracticeSession(
            user_id=user_id,
            skill="scales",
            category="music",
            priority="medium",
            duration_minutes=minutes,
            started_at=ended - timedelta(minutes=minutes),
            ended_at=ended,
            xp_earned=0,
            coins_earned=0,
        ))
    await db.commit()


class TestUserStats:
    @pytest.mark.asyncio
    async def test_stats_for_new_user(self, db_session, user):
        stats = await get_user_stats(db_session, user.id)
        assert stats.sessions == 0
        assert stats.level == 1
        assert stats.practice_minutes == 0

    @pytest.mark.asyncio
    async def test_stats_aggregate_history(self, db_session, user):
        await _add_sessions(db_session, user.id, 3, minutes=20)
        stats = await get_user_stats(db_session, user.id)
        assert stats.sessions == 3
        assert stats.practice_minutes == 60


class TestEvaluateAchievements:
    @pytest.mark.asyncio
    async def test_nothing_earned_without_activity(self, db_session, user):
        assert await evaluate_achievements(db_session, None, user.id) == []

    @pytest.mark.asyncio
    async def test_consistency_king_scenario(self, db_session, user):
        """29 sessions already evaluated; the 30th awards consistency_king exactly once."""
        await _add_sessions(db_session, user.id, 29)
        await evaluate_achievements(db_session, None, user.id)
        assert "consistency_king" not in await get_earned_ids(db_session, user.id)

        await _add_sessions(db_session, user.id, 1)
        new = await evaluate_achievements(db_session, None, user.id)
        # Its 500 XP reward also lifts the user from level 4 to 5
        assert [a.achievement_id for a in new] == ["consistency_king", "level_5"]

        again = await evaluate_achievements(db_session, None, user.id)
        assert again == []
        count = (await db_session.execute(
            select(func.count(UserAchievement.id)).where(UserAchievement.achievement_id == "consistency_king")
        )).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_awards_in_catalog_order_with_xp(self, db_session, user):
        await _add_sessions(db_session, user.id, 1, minutes=60)
        new = await evaluate_achievements(db_session, None, user.id)

        # first_steps, early_bird, night_owl share the session requirement of 1
        assert [a.achievement_id for a in new] == ["first_steps", "early_bird", "night_owl", "first_hour"]
        gam = await get_or_create_gamification(db_session, user.id)
        assert gam.total_xp == 100 + 150 + 150 + 100

    @pytest.mark.asyncio
    async def test_reward_xp_unlocks_level_achievement(self, db_session, user):
        catalog = (
            AchievementDefinition("starter", AchievementType.SESSION, 1, 1000, "Starter"),
            AchievementDefinition("level_3", AchievementType.LEVEL, 3, 10, "Level 3"),
        )
        await _add_sessions(db_session, user.id, 1)

        new = await evaluate_achievements(db_session, None, user.id, catalog=catalog)

        # 1000 XP from "starter" lifts the user to level 5, which satisfies "level_3"
        assert [a.achievement_id for a in new] == ["starter", "level_3"]

    @pytest.mark.asyncio
    async def test_list_earned(self, db_session, user):
        await _add_sessions(db_session, user.id, 1)
        await evaluate_achievements(db_session, None, user.id)
        earned = await list_earned(db_session, user.id)
        assert {e.achievement_id for e in earned} == {"first_steps", "early_bird", "night_owl"}
