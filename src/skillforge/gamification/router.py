"""Gamification API endpoints: activity, XP, progress and achievements."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillforge.auth.dependencies import get_current_user
from skillforge.config import get_settings
from skillforge.database import get_session
from skillforge.db.models import User, UserAchievement, UserGamification
from skillforge.dependencies import get_redis_dep
from skillforge.exceptions import ConcurrencyConflictError
from skillforge.gamification.achievement_service import list_earned
from skillforge.gamification.achievements import ACHIEVEMENT_CATALOG, ACHIEVEMENTS_BY_ID, progress
from skillforge.gamification.leveling import XPState, xp_for_level
from skillforge.gamification.progress_service import (
    ProgressUpdate,
    apply_activity,
    evaluate_achievements_with_retry,
)
from skillforge.gamification.schemas import (
    AchievementProgress,
    AchievementResponse,
    AchievementsResponse,
    ActivityRequest,
    ActivityResponse,
    EarnedAchievementResponse,
    EarnedAchievementsResponse,
    ProgressResponse,
    StreakResponse,
    XPAwardRequest,
    XPAwardResponse,
    XPResponse,
)
from skillforge.gamification.streak_engine import StreakState
from skillforge.gamification.streak_service import streak_state_of
from skillforge.gamification.xp_service import get_or_create_gamification, grant_xp
from skillforge.practice.history import get_user_stats
from skillforge.retry import retry_async

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


def streak_response(state: StreakState) -> StreakResponse:
    return StreakResponse(
        current_streak=state.current_streak,
        best_streak=state.best_streak,
        last_activity_at=state.last_activity_at,
    )


def xp_response(state: XPState, total_xp: int | None = None) -> XPResponse:
    return XPResponse(
        xp=state.xp,
        level=state.level,
        coins=state.coins,
        xp_for_next_level=xp_for_level(state.level),
        total_xp=total_xp,
    )


def earned_response(row: UserAchievement) -> EarnedAchievementResponse:
    definition = ACHIEVEMENTS_BY_ID.get(row.achievement_id)
    return EarnedAchievementResponse(
        achievement_id=row.achievement_id,
        title=definition.title if definition else row.achievement_id,
        xp_reward=row.xp_reward,
        earned_at=row.earned_at,
    )


def activity_response(update: ProgressUpdate) -> ActivityResponse:
    activity = update.activity
    return ActivityResponse(
        kind=activity.kind.value if activity.kind else None,
        xp_awarded=activity.xp_awarded,
        duplicate=activity.duplicate,
        streak=streak_response(activity.streak),
        xp=xp_response(activity.xp_state),
        levels_gained=activity.levels_gained,
        new_achievements=[earned_response(a) for a in update.new_achievements],
    )


def _progress_response(gam: UserGamification) -> ProgressResponse:
    return ProgressResponse(
        streak=streak_response(streak_state_of(gam)),
        xp=xp_response(XPState(gam.xp, gam.level, gam.coins), total_xp=gam.total_xp),
    )


@router.post("/activity", response_model=ActivityResponse)
async def post_activity(
    body: ActivityRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Record a qualifying activity: updates the streak, awards XP, checks achievements."""
    user_id = user.id
    update = await apply_activity(
        db, redis, user_id,
        idempotency_key=body.idempotency_key if body else None,
    )
    return activity_response(update)


@router.get("/me/progress", response_model=ProgressResponse)
async def get_progress(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Current streak and XP state."""
    gam = await get_or_create_gamification(db, user.id)
    await db.commit()
    return _progress_response(gam)


@router.post("/xp", response_model=XPAwardResponse)
async def post_xp(
    body: XPAwardRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Award XP directly, then check achievements (levels may have changed)."""
    settings = get_settings()
    user_id = user.id

    async def _grant():
        grant = await grant_xp(
            db, redis, user_id, body.amount,
            source=body.source,
            description=body.description,
            idempotency_key=body.idempotency_key,
        )
        await db.commit()
        return grant

    grant = await retry_async(
        _grant,
        retry_on=ConcurrencyConflictError,
        attempts=settings.activity_retry_attempts,
        backoff_seconds=settings.activity_retry_backoff_seconds,
    )
    new_achievements = await evaluate_achievements_with_retry(db, redis, user_id)
    return XPAwardResponse(
        granted=grant.granted,
        xp=xp_response(grant.xp_state),
        levels_gained=grant.levels_gained,
        new_achievements=[earned_response(a) for a in new_achievements],
    )


@router.get("/achievements", response_model=AchievementsResponse)
async def get_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Full catalog with earned flags and progress for the current user."""
    stats = await get_user_stats(db, user.id)
    earned = {row.achievement_id: row for row in await list_earned(db, user.id)}

    items = []
    for achievement in ACHIEVEMENT_CATALOG:
        row = earned.get(achievement.id)
        items.append(AchievementResponse(
            id=achievement.id,
            type=achievement.type.value,
            title=achievement.title,
            description=achievement.description,
            requirement=achievement.requirement,
            xp_reward=achievement.xp_reward,
            earned=row is not None,
            earned_at=row.earned_at if row else None,
            progress=AchievementProgress(**progress(achievement, stats)),
        ))

    return AchievementsResponse(
        achievements=items,
        total_available=len(ACHIEVEMENT_CATALOG),
        total_earned=len(earned),
    )


@router.get("/achievements/me", response_model=EarnedAchievementsResponse)
async def get_my_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Achievements the current user has earned."""
    rows = await list_earned(db, user.id)
    return EarnedAchievementsResponse(earned=[earned_response(r) for r in rows])


@router.post("/achievements/check", response_model=EarnedAchievementsResponse)
async def check_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Evaluate the catalog now and award anything newly satisfied."""
    rows = await evaluate_achievements_with_retry(db, redis, user.id)
    return EarnedAchievementsResponse(earned=[earned_response(r) for r in rows])
