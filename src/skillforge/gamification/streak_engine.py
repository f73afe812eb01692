"""Daily streak rules.

A streak counts consecutive days of activity. Windows are measured from the
last activity that moved the streak:

* under 24h      -> same day, streak unchanged, reduced XP
* 24h to 30h     -> next day, streak + 1, tiered XP
* over 30h       -> streak broken, reset to 1

Same-day activity leaves ``last_activity_at`` untouched so the caller can skip
the streak write entirely.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

SAME_DAY_WINDOW = timedelta(hours=24)
CONTINUATION_WINDOW = timedelta(hours=30)

BASE_XP = 10
SAME_DAY_XP = 5
STREAK_XP_TIERS: tuple[tuple[int, int], ...] = (
    (7, 50),
    (3, 25),
    (0, 15),
)


class ActivityKind(str, enum.Enum):
    FIRST = "first"
    SAME_DAY = "same_day"
    CONTINUED = "continued"
    RESET = "reset"


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    best_streak: int = 0
    last_activity_at: datetime | None = None


@dataclass(frozen=True)
class ActivityResult:
    state: StreakState
    kind: ActivityKind
    xp_awarded: int

    @property
    def persist_streak(self) -> bool:
        """Whether the streak state changed and needs to be written back."""
        return self.kind is not ActivityKind.SAME_DAY


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def continuation_xp(new_streak: int) -> int:
    """XP for extending a streak, tiered by the streak length reached."""
    for threshold, xp in STREAK_XP_TIERS:
        if new_streak >= threshold:
            return xp
    return STREAK_XP_TIERS[-1][1]


def record_activity(state: StreakState, now: datetime) -> ActivityResult:
    """Apply one activity event at ``now`` to ``state``.

    Not idempotent: callers must invoke it at most once per logical event.
    """
    now = as_utc(now)

    if state.last_activity_at is None:
        return _advance(state, 1, now, ActivityKind.FIRST, BASE_XP)

    delta = now - as_utc(state.last_activity_at)

    if delta < SAME_DAY_WINDOW:
        return ActivityResult(state=state, kind=ActivityKind.SAME_DAY, xp_awarded=SAME_DAY_XP)

    if delta <= CONTINUATION_WINDOW:
        new_streak = state.current_streak + 1
        return _advance(state, new_streak, now, ActivityKind.CONTINUED, continuation_xp(new_streak))

    return _advance(state, 1, now, ActivityKind.RESET, BASE_XP)


def _advance(
    state: StreakState,
    new_streak: int,
    now: datetime,
    kind: ActivityKind,
    xp: int,
) -> ActivityResult:
    new_state = StreakState(
        current_streak=new_streak,
        best_streak=max(state.best_streak, new_streak),
        last_activity_at=now,
    )
    return ActivityResult(state=new_state, kind=kind, xp_awarded=xp)
