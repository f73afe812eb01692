"""Achievement catalog and evaluation.

Evaluation is a pure function over cumulative user statistics. Persisting
earned achievements and granting their XP is done by ``achievement_service``.
"""

from __future__ import annotations

import enum
from collections.abc import Collection, Iterable
from dataclasses import dataclass


class AchievementType(str, enum.Enum):
    STREAK = "streak"
    SESSION = "session"
    LEVEL = "level"
    PHOTO = "photo"
    TIME = "time"


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    type: AchievementType
    requirement: float
    xp_reward: int
    title: str = ""
    description: str = ""


@dataclass(frozen=True)
class UserStats:
    """Cumulative statistics an achievement can be measured against."""

    current_streak: int = 0
    best_streak: int = 0
    sessions: int = 0
    level: int = 1
    photos: int = 0
    practice_minutes: float = 0


def _a(id_: str, type_: AchievementType, requirement: float, xp: int, title: str, description: str) -> AchievementDefinition:
    return AchievementDefinition(id_, type_, requirement, xp, title, description)


# Order matters: entries satisfied together are awarded in this order.
ACHIEVEMENT_CATALOG: tuple[AchievementDefinition, ...] = (
    _a("first_steps", AchievementType.SESSION, 1, 100, "First Steps", "Complete your first practice session"),
    _a("streak_starter", AchievementType.STREAK, 3, 150, "Streak Starter", "Maintain a 3-day streak"),
    _a("streak_warrior", AchievementType.STREAK, 7, 350, "Streak Warrior", "Maintain a 7-day streak"),
    _a("streak_master", AchievementType.STREAK, 30, 1000, "Streak Master", "Maintain a 30-day streak"),
    _a("consistency_king", AchievementType.SESSION, 30, 500, "Consistency King", "Complete 30 practice sessions"),
    _a("picture_perfect", AchievementType.PHOTO, 10, 250, "Picture Perfect", "Upload 10 practice photos"),
    _a("time_wizard", AchievementType.TIME, 1440, 500, "Time Wizard", "Accumulate 24 hours of practice time"),
    _a("grand_master", AchievementType.LEVEL, 10, 1500, "Grand Master", "Reach level 10"),
    _a("early_bird", AchievementType.SESSION, 1, 150, "Early Bird", "Complete a practice session before 9 AM"),
    _a("night_owl", AchievementType.SESSION, 1, 150, "Night Owl", "Complete a practice session after 10 PM"),
    _a("weekend_warrior", AchievementType.SESSION, 2, 200, "Weekend Warrior", "Complete sessions on both Saturday and Sunday"),
    _a("photography_novice", AchievementType.PHOTO, 1, 100, "Photography Novice", "Upload your first practice photo"),
    _a("photography_enthusiast", AchievementType.PHOTO, 25, 350, "Photography Enthusiast", "Upload 25 practice photos"),
    _a("photography_pro", AchievementType.PHOTO, 50, 500, "Photography Pro", "Upload 50 practice photos"),
    _a("first_hour", AchievementType.TIME, 60, 100, "First Hour", "Accumulate 1 hour of practice time"),
    _a("half_day", AchievementType.TIME, 720, 300, "Half Day", "Accumulate 12 hours of practice time"),
    _a("centurion", AchievementType.SESSION, 100, 1000, "Centurion", "Complete 100 practice sessions"),
    _a("level_5", AchievementType.LEVEL, 5, 500, "Halfway There", "Reach level 5"),
    _a("elite_status", AchievementType.LEVEL, 20, 2500, "Elite Status", "Reach level 20"),
)

ACHIEVEMENTS_BY_ID: dict[str, AchievementDefinition] = {a.id: a for a in ACHIEVEMENT_CATALOG}


def stat_for(achievement_type: AchievementType | str, stats: UserStats) -> float:
    """The statistic an achievement type is measured against."""
    kind = AchievementType(achievement_type)
    if kind is AchievementType.STREAK:
        return max(stats.current_streak, stats.best_streak)
    if kind is AchievementType.SESSION:
        return stats.sessions
    if kind is AchievementType.LEVEL:
        return stats.level
    if kind is AchievementType.PHOTO:
        return stats.photos
    if kind is AchievementType.TIME:
        return stats.practice_minutes
    msg = f"Unhandled achievement type: {kind}"
    raise ValueError(msg)


def evaluate(
    catalog: Iterable[AchievementDefinition],
    stats: UserStats,
    already_earned: Collection[str],
) -> list[AchievementDefinition]:
    """Return catalog entries newly satisfied by ``stats``, in catalog order."""
    earned = set(already_earned)
    return [
        achievement
        for achievement in catalog
        if achievement.id not in earned and stat_for(achievement.type, stats) >= achievement.requirement
    ]


def progress(achievement: AchievementDefinition, stats: UserStats) -> dict:
    """Progress toward one achievement, capped at 100%."""
    current = stat_for(achievement.type, stats)
    required = achievement.requirement
    percentage = min(100.0, (current / required) * 100) if required > 0 else 100.0
    return {
        "current": current,
        "required": required,
        "percentage": round(percentage, 1),
    }
