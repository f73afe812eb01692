"""Pydantic request/response models for gamification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# --- Achievements earned ---


class EarnedAchievementResponse(BaseModel):
    achievement_id: str
    title: str
    xp_reward: int
    earned_at: datetime


# --- Streak ---


class StreakResponse(BaseModel):
    current_streak: int
    best_streak: int
    last_activity_at: datetime | None = None


# --- XP ---


class XPResponse(BaseModel):
    xp: int
    level: int
    coins: int
    xp_for_next_level: int
    total_xp: int | None = None


class XPAwardRequest(BaseModel):
    amount: int
    source: str = Field(default="manual", max_length=32)
    description: str | None = Field(default=None, max_length=256)
    idempotency_key: str | None = Field(default=None, max_length=200)


class XPAwardResponse(BaseModel):
    granted: bool
    xp: XPResponse
    levels_gained: int
    new_achievements: list[EarnedAchievementResponse] = []


# --- Activity ---


class ActivityRequest(BaseModel):
    idempotency_key: str | None = Field(default=None, max_length=200)


class ActivityResponse(BaseModel):
    kind: str | None
    xp_awarded: int
    duplicate: bool = False
    streak: StreakResponse
    xp: XPResponse
    levels_gained: int = 0
    new_achievements: list[EarnedAchievementResponse] = []


class ProgressResponse(BaseModel):
    streak: StreakResponse
    xp: XPResponse


# --- Achievements ---


class AchievementProgress(BaseModel):
    current: float
    required: float
    percentage: float


class AchievementResponse(BaseModel):
    id: str
    type: str
    title: str
    description: str
    requirement: float
    xp_reward: int
    earned: bool = False
    earned_at: datetime | None = None
    progress: AchievementProgress


class AchievementsResponse(BaseModel):
    achievements: list[AchievementResponse]
    total_available: int
    total_earned: int


class EarnedAchievementsResponse(BaseModel):
    earned: list[EarnedAchievementResponse]

