"""Achievement evaluation tests — catalog order, single award, statistics per type."""

import pytest

from skillforge.gamification.achievements import (
    ACHIEVEMENT_CATALOG,
    ACHIEVEMENTS_BY_ID,
    AchievementDefinition,
    AchievementType,
    UserStats,
    evaluate,
    progress,
    stat_for,
)


def _ids(achievements: list[AchievementDefinition]) -> list[str]:
    return [a.id for a in achievements]


class TestCatalog:
    def test_ids_are_unique(self):
        assert len(ACHIEVEMENTS_BY_ID) == len(ACHIEVEMENT_CATALOG)

    def test_requirements_and_rewards_positive(self):
        for achievement in ACHIEVEMENT_CATALOG:
            assert achievement.requirement > 0
            assert achievement.xp_reward > 0

    def test_consistency_king_definition(self):
        king = ACHIEVEMENTS_BY_ID["consistency_king"]
        assert king.type is AchievementType.SESSION
        assert king.requirement == 30
        assert king.xp_reward == 500


class TestStatFor:
    def test_streak_uses_best_of_current_and_best(self):
        assert stat_for(AchievementType.STREAK, UserStats(current_streak=2, best_streak=8)) == 8
        assert stat_for(AchievementType.STREAK, UserStats(current_streak=4, best_streak=0)) == 4

    def test_each_type_reads_its_statistic(self):
        stats = UserStats(sessions=3, level=4, photos=5, practice_minutes=90.5)
        assert stat_for(AchievementType.SESSION, stats) == 3
        assert stat_for(AchievementType.LEVEL, stats) == 4
        assert stat_for(AchievementType.PHOTO, stats) == 5
        assert stat_for(AchievementType.TIME, stats) == 90.5

    def test_accepts_type_values(self):
        assert stat_for("photo", UserStats(photos=2)) == 2

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            stat_for("karma", UserStats())


class TestEvaluate:
    def test_nothing_for_fresh_user(self):
        assert evaluate(ACHIEVEMENT_CATALOG, UserStats(), set()) == []

    def test_consistency_king_scenario(self):
        """29 sessions earned first_steps already; the 30th unlocks consistency_king."""
        stats = UserStats(sessions=30)
        new = evaluate(ACHIEVEMENT_CATALOG, stats, {"first_steps", "weekend_warrior", "early_bird", "night_owl"})
        assert _ids(new) == ["consistency_king"]

    def test_never_returns_already_earned(self):
        stats = UserStats(current_streak=7, best_streak=7, sessions=1)
        first = evaluate(ACHIEVEMENT_CATALOG, stats, set())
        earned = set(_ids(first))
        assert evaluate(ACHIEVEMENT_CATALOG, stats, earned) == []

    def test_results_in_catalog_order(self):
        stats = UserStats(
            current_streak=30, best_streak=30, sessions=100, level=20,
            photos=50, practice_minutes=1440,
        )
        result = evaluate(ACHIEVEMENT_CATALOG, stats, set())
        assert _ids(result) == [a.id for a in ACHIEVEMENT_CATALOG]

    def test_requirement_is_inclusive(self):
        stats = UserStats(photos=1, practice_minutes=60)
        assert _ids(evaluate(ACHIEVEMENT_CATALOG, stats, set())) == ["photography_novice", "first_hour"]

    def test_custom_catalog(self):
        catalog = (
            AchievementDefinition("b", AchievementType.LEVEL, 2, 10),
            AchievementDefinition("a", AchievementType.LEVEL, 1, 10),
        )
        assert _ids(evaluate(catalog, UserStats(level=2), set())) == ["b", "a"]


class TestProgress:
    def test_partial_progress(self):
        result = progress(ACHIEVEMENTS_BY_ID["streak_warrior"], UserStats(current_streak=3))
        assert result == {"current": 3, "required": 7, "percentage": 42.9}

    def test_progress_capped_at_100(self):
        result = progress(ACHIEVEMENTS_BY_ID["first_steps"], UserStats(sessions=12))
        assert result["percentage"] == 100.0
