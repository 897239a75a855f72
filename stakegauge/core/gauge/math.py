"""Pure arithmetic for the gauge staking kernel.

Every function is stateless and operates on plain Python ints.

All operands are non-negative, so Python's `//` (floor) coincides with
truncation toward zero. Truncation dust stays in the index remainder and is
never corrected.
"""

from __future__ import annotations

# Domain constants
PRECISION: int = 10**18
WEEK: int = 7 * 24 * 60 * 60  # 604800
MAX_UINT256: int = 2**256 - 1


# -- Epoch helpers -----------------------------------------------------------

def epoch_start(timestamp: int) -> int:
    """Start of the calendar-aligned epoch containing *timestamp*."""
    return timestamp - (timestamp % WEEK)


def epoch_next(timestamp: int) -> int:
    """First epoch boundary strictly after *timestamp*."""
    return timestamp - (timestamp % WEEK) + WEEK


def time_to_next_epoch(timestamp: int) -> int:
    """Seconds until the next boundary; always in ``[1, WEEK]``."""
    return epoch_next(timestamp) - timestamp


# -- Accrual helpers ---------------------------------------------------------

def last_time_reward_applicable(now: int, period_end: int) -> int:
    """``min(now, period_end)``."""
    return now if now < period_end else period_end


def reward_per_unit(
    reward_per_unit_stored: int,
    total_staked: int,
    last_update_time: int,
    reward_rate: int,
    now: int,
    period_end: int,
) -> int:
    """Index value at *now*.

    With nothing staked the stored value is returned unchanged: idle time is
    discarded, never retroactively distributed.
    """
    if total_staked == 0:
        return reward_per_unit_stored
    applicable = last_time_reward_applicable(now, period_end)
    elapsed = applicable - last_update_time
    if elapsed <= 0:
        return reward_per_unit_stored
    return reward_per_unit_stored + (elapsed * reward_rate * PRECISION) // total_staked


def pending_reward(balance: int, index: int, reward_per_unit_paid: int) -> int:
    """Unsettled delta: ``balance * (index - paid) / 1e18``."""
    return (balance * (index - reward_per_unit_paid)) // PRECISION


def earned(balance: int, index: int, reward_per_unit_paid: int, accrued_reward: int) -> int:
    """Total claimable reward for a position at the given index."""
    return pending_reward(balance, index, reward_per_unit_paid) + accrued_reward


# -- Scheduler helpers -------------------------------------------------------

def leftover(now: int, period_end: int, reward_rate: int) -> int:
    """Undistributed remainder of an active stream (0 once finished)."""
    if now >= period_end:
        return 0
    return (period_end - now) * reward_rate


def next_reward_rate(amount: int, now: int, period_end: int, reward_rate: int) -> int:
    """Rate for a new funding: ``floor((amount + leftover) / time_to_next_epoch)``."""
    return (amount + leftover(now, period_end, reward_rate)) // time_to_next_epoch(now)


def max_safe_reward_rate(reward_balance: int, now: int) -> int:
    """Highest rate the gauge's reward balance can back until the next boundary."""
    return reward_balance // time_to_next_epoch(now)
