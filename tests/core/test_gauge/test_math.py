"""Tests for stakegauge/core/gauge/math.py — epoch, accrual and scheduler arithmetic."""

from stakegauge.core.gauge.math import (
    PRECISION,
    WEEK,
    earned,
    epoch_next,
    epoch_start,
    last_time_reward_applicable,
    leftover,
    max_safe_reward_rate,
    next_reward_rate,
    pending_reward,
    reward_per_unit,
    time_to_next_epoch,
)


class TestEpochs:
    def test_week_constant(self):
        assert WEEK == 604_800

    def test_boundary_maps_to_next_boundary(self):
        assert epoch_next(WEEK) == 2 * WEEK
        assert epoch_start(WEEK) == WEEK

    def test_mid_epoch(self):
        t = 3 * WEEK + 12_345
        assert epoch_start(t) == 3 * WEEK
        assert epoch_next(t) == 4 * WEEK

    def test_last_second_of_epoch(self):
        t = 2 * WEEK - 1
        assert epoch_next(t) == 2 * WEEK
        assert time_to_next_epoch(t) == 1

    def test_time_to_next_at_boundary_is_full_week(self):
        assert time_to_next_epoch(0) == WEEK
        assert time_to_next_epoch(5 * WEEK) == WEEK

    def test_time_to_next_is_always_positive(self):
        for t in (0, 1, WEEK - 1, WEEK, WEEK + 1, 10**12 + 7):
            assert 1 <= time_to_next_epoch(t) <= WEEK


class TestRewardPerUnit:
    def test_nothing_staked_returns_stored(self):
        assert reward_per_unit(42, 0, 100, 5, 1_000, 10_000) == 42

    def test_accrues_linearly(self):
        # 100 seconds at rate 1 over 100 staked = 1 reward per unit.
        assert reward_per_unit(0, 100, 0, 1, 100, 1_000) == PRECISION

    def test_capped_at_period_end(self):
        capped = reward_per_unit(0, 100, 0, 1, 5_000, 1_000)
        assert capped == reward_per_unit(0, 100, 0, 1, 1_000, 1_000)

    def test_no_elapsed_time(self):
        assert reward_per_unit(7, 100, 500, 3, 500, 1_000) == 7

    def test_last_update_past_now_is_noop(self):
        assert reward_per_unit(7, 100, 800, 3, 500, 1_000) == 7

    def test_floor_division(self):
        # 1 * 1 * 1e18 / 3 truncates.
        assert reward_per_unit(0, 3, 0, 1, 1, 10) == PRECISION // 3

    def test_last_time_reward_applicable(self):
        assert last_time_reward_applicable(10, 20) == 10
        assert last_time_reward_applicable(30, 20) == 20


class TestEarned:
    def test_pending(self):
        assert pending_reward(100, 3 * PRECISION, PRECISION) == 200

    def test_includes_accrued(self):
        assert earned(100, 3 * PRECISION, PRECISION, 5) == 205

    def test_zero_balance_keeps_accrued(self):
        assert earned(0, 9 * PRECISION, 0, 11) == 11

    def test_truncates_dust(self):
        assert pending_reward(1, PRECISION - 1, 0) == 0


class TestScheduler:
    def test_leftover_finished_stream(self):
        assert leftover(1_000, 1_000, 5) == 0
        assert leftover(2_000, 1_000, 5) == 0

    def test_leftover_active_stream(self):
        assert leftover(400, 1_000, 5) == 3_000

    def test_next_rate_fresh_stream(self):
        assert next_reward_rate(WEEK, WEEK, 0, 0) == 1
        assert next_reward_rate(WEEK - 1, WEEK, 0, 0) == 0

    def test_next_rate_rolls_in_leftover(self):
        now = WEEK + WEEK // 2
        period_end = 2 * WEEK
        remaining = period_end - now
        # floor((amount + remaining * rate) / remaining)
        assert next_reward_rate(remaining, now, period_end, 10) == 11
        assert next_reward_rate(remaining - 1, now, period_end, 10) == 10

    def test_max_safe_rate(self):
        assert max_safe_reward_rate(2 * WEEK, 0) == 2
        assert max_safe_reward_rate(2 * WEEK - 1, 0) == 1
        assert max_safe_reward_rate(10, WEEK - 5) == 2
