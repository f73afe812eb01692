"""Pydantic request/response models for practice session endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from skillforge.gamification.schemas import ActivityResponse


class SessionCreateRequest(BaseModel):
    skill: str = Field(min_length=1, max_length=128)
    category: str = Field(default="general", max_length=64)
    priority: str = Field(default="medium", max_length=16)
    duration_seconds: float = Field(ge=0)
    started_at: datetime | None = None
    photo_id: str | None = None


class SessionResponse(BaseModel):
    id: int
    skill: str
    category: str
    priority: str
    duration_minutes: float
    started_at: datetime
    ended_at: datetime
    xp_earned: int
    coins_earned: int
    photo_id: str | None = None


class SessionCompleteResponse(BaseModel):
    session: SessionResponse
    activity: ActivityResponse


class SessionHistoryResponse(BaseModel):
    sessions: list[SessionResponse]
    total: int
    page: int
    per_page: int


class StatsResponse(BaseModel):
    current_streak: int
    best_streak: int
    sessions: int
    level: int
    photos: int
    practice_minutes: float
