"""Practice session endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skillforge.auth.dependencies import get_current_user
from skillforge.database import get_session
from skillforge.db.models import PracticeSession, User
from skillforge.dependencies import get_redis_dep
from skillforge.gamification.router import activity_response
from skillforge.practice.history import count_sessions, get_user_stats, list_sessions
from skillforge.practice.schemas import (
    SessionCompleteResponse,
    SessionCreateRequest,
    SessionHistoryResponse,
    SessionResponse,
    StatsResponse,
)
from skillforge.practice.service import complete_session

router = APIRouter(prefix="/api/v1/practice", tags=["Practice"])


def session_response(row: PracticeSession) -> SessionResponse:
    return SessionResponse(
        id=row.id,
        skill=row.skill,
        category=row.category,
        priority=row.priority,
        duration_minutes=row.duration_minutes,
        started_at=row.started_at,
        ended_at=row.ended_at,
        xp_earned=row.xp_earned,
        coins_earned=row.coins_earned,
        photo_id=row.photo_id,
    )


@router.post("/sessions", response_model=SessionCompleteResponse, status_code=201)
async def post_session(
    body: SessionCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Complete a practice session: session XP/coins, streak activity, achievements."""
    completed = await complete_session(
        db, redis, user.id,
        skill=body.skill,
        duration_seconds=body.duration_seconds,
        started_at=body.started_at,
        category=body.category,
        priority=body.priority,
        photo_id=body.photo_id,
    )
    return SessionCompleteResponse(
        session=session_response(completed.session),
        activity=activity_response(completed.progress),
    )


@router.get("/sessions", response_model=SessionHistoryResponse)
async def get_sessions(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Practice history, most recent first."""
    rows = await list_sessions(db, user.id, limit=per_page, offset=(page - 1) * per_page)
    return SessionHistoryResponse(
        sessions=[session_response(r) for r in rows],
        total=await count_sessions(db, user.id),
        page=page,
        per_page=per_page,
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Cumulative statistics used for achievements."""
    return StatsResponse(**asdict(await get_user_stats(db, user.id)))
