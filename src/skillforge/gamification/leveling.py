"""Level thresholds, XP normalization and session rewards.

Level ``n`` needs ``n * 100`` XP to advance; ``xp`` is the progress toward the
next level and resets on every level-up.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from skillforge.exceptions import InvalidArgumentError

LEVEL_XP_STEP = 100
LEVEL_UP_COIN_BONUS = 10

# Practice session rewards
MINUTES_PER_SESSION_XP = 5
MINUTES_PER_SESSION_COIN = 10


@dataclass(frozen=True)
class XPState:
    xp: int = 0
    level: int = 1
    coins: int = 0


def xp_for_level(level: int) -> int:
    """XP needed to advance from ``level`` to ``level + 1``."""
    return level * LEVEL_XP_STEP


def award_xp(state: XPState, amount: int) -> tuple[XPState, int]:
    """Add ``amount`` XP, levelling up as many times as the total allows.

    Returns the new state and the number of levels gained. Each level gained
    also grants ``LEVEL_UP_COIN_BONUS`` coins.
    """
    if amount < 0:
        msg = f"XP amount must be >= 0, got {amount}"
        raise InvalidArgumentError(msg)

    xp = state.xp + amount
    level = state.level
    coins = state.coins
    levels_gained = 0

    while xp >= xp_for_level(level):
        xp -= xp_for_level(level)
        level += 1
        coins += LEVEL_UP_COIN_BONUS
        levels_gained += 1

    return XPState(xp=xp, level=level, coins=coins), levels_gained


def award_coins(state: XPState, amount: int) -> XPState:
    """Add coins earned outside of level-ups."""
    if amount < 0:
        msg = f"Coin amount must be >= 0, got {amount}"
        raise InvalidArgumentError(msg)
    return replace(state, coins=state.coins + amount)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def session_rewards(duration_seconds: float) -> tuple[int, int]:
    """XP and coins for a completed practice session.

    1 XP per 5 minutes and 1 coin per 10 minutes of practice, rounded half up.
    """
    if duration_seconds < 0:
        msg = f"Session duration must be >= 0, got {duration_seconds}"
        raise InvalidArgumentError(msg)
    minutes = duration_seconds / 60
    return (
        _round_half_up(minutes / MINUTES_PER_SESSION_XP),
        _round_half_up(minutes / MINUTES_PER_SESSION_COIN),
    )
