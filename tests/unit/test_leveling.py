"""Level computation tests: thresholds, multi-level-ups, coins and session rewards."""

import pytest

from skillforge.exceptions import InvalidArgumentError, ValidationError
from skillforge.gamification.leveling import (
    XPState,
    award_coins,
    award_xp,
    session_rewards,
    xp_for_level,
)


class TestThresholds:
    def test_level_thresholds(self):
        assert xp_for_level(1) == 100
        assert xp_for_level(2) == 200
        assert xp_for_level(10) == 1000


class TestAwardXP:
    def test_no_level_up(self):
        state, gained = award_xp(XPState(xp=10, level=1, coins=3), 50)
        assert state == XPState(xp=60, level=1, coins=3)
        assert gained == 0

    def test_level_up_carries_remainder(self):
        state, gained = award_xp(XPState(xp=95, level=1, coins=0), 10)
        assert state == XPState(xp=5, level=2, coins=10)
        assert gained == 1

    def test_exact_threshold_levels_up(self):
        state, gained = award_xp(XPState(xp=0, level=1), 100)
        assert state == XPState(xp=0, level=2, coins=10)
        assert gained == 1

    def test_multiple_level_ups_in_one_grant(self):
        # 100 (L1) + 200 (L2) + 300 (L3) = 600, 50 left toward L4
        state, gained = award_xp(XPState(), 650)
        assert state == XPState(xp=50, level=4, coins=30)
        assert gained == 3

    def test_zero_amount(self):
        state, gained = award_xp(XPState(xp=40, level=3, coins=7), 0)
        assert state == XPState(xp=40, level=3, coins=7)
        assert gained == 0

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidArgumentError):
            award_xp(XPState(), -1)

    def test_invalid_argument_is_validation_error(self):
        with pytest.raises(ValidationError):
            award_xp(XPState(), -100)

    def test_xp_stays_below_threshold(self):
        state = XPState()
        for amount in (37, 250, 5, 999, 1, 410):
            state, _ = award_xp(state, amount)
            assert 0 <= state.xp < xp_for_level(state.level)


class TestAwardCoins:
    def test_adds_coins(self):
        assert award_coins(XPState(coins=5), 3).coins == 8

    def test_negative_rejected(self):
        with pytest.raises(InvalidArgumentError):
            award_coins(XPState(), -5)


class TestSessionRewards:
    @pytest.mark.parametrize(
        ("minutes", "xp", "coins"),
        [
            (0, 0, 0),
            (2, 0, 0),
            (2.5, 1, 0),
            (5, 1, 1),
            (25, 5, 3),
            (60, 12, 6),
        ],
    )
    def test_rewards_round_half_up(self, minutes: float, xp: int, coins: int):
        assert session_rewards(minutes * 60) == (xp, coins)

    def test_negative_duration_rejected(self):
        with pytest.raises(InvalidArgumentError):
            session_rewards(-1)
