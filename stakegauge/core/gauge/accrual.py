"""Reward accumulator: index refresh and per-account settlement.

`settle()` must run for the relevant account before any change to that
account's balance, to `total_staked` or to `reward_rate`, and before any
payout.
"""

from __future__ import annotations

from dataclasses import replace

from .math import earned, last_time_reward_applicable, reward_per_unit
from .types import GaugeState, Position


def current_index(state: GaugeState, now: int) -> int:
    return reward_per_unit(
        state.reward_per_unit_stored,
        state.total_staked,
        state.last_update_time,
        state.reward_rate,
        now,
        state.period_end,
    )


def earned_by(state: GaugeState, account: str, now: int) -> int:
    pos = state.position(account)
    return earned(pos.balance, current_index(state, now), pos.reward_per_unit_paid, pos.accrued_reward)


def settle(state: GaugeState, account: str | None, now: int) -> GaugeState:
    """Fold elapsed time into the index and crystallize *account*'s reward.

    With ``account=None`` only the global index is refreshed.
    """
    index = current_index(state, now)
    updated = replace(
        state,
        reward_per_unit_stored=index,
        last_update_time=last_time_reward_applicable(now, state.period_end),
    )
    if account is None:
        return updated

    pos = state.position(account)
    settled = Position(
        balance=pos.balance,
        reward_per_unit_paid=index,
        accrued_reward=earned(pos.balance, index, pos.reward_per_unit_paid, pos.accrued_reward),
    )
    return replace(updated, positions={**state.positions, account: settled})
