"""Invariant checkers for the gauge kernel.

Each state invariant returns True when it holds; `check_all()` returns the
list of violated invariant IDs (empty = all pass). Transition invariants
compare a PRE- and POST-state and are checked by `check_transition()`.
"""

from __future__ import annotations

from typing import Callable

from .math import MAX_UINT256
from .types import GaugeConfig, GaugeState


def inv_total_matches_balances(c: GaugeConfig, s: GaugeState) -> bool:
    return s.total_staked == sum(p.balance for p in s.positions.values())


def inv_fields_in_domain(c: GaugeConfig, s: GaugeState) -> bool:
    scalars = (
        s.total_staked, s.reward_per_unit_stored, s.last_update_time,
        s.reward_rate, s.period_end, s.fees0, s.fees1,
    )
    if any(v < 0 or v > MAX_UINT256 for v in scalars):
        return False
    for p in s.positions.values():
        if min(p.balance, p.reward_per_unit_paid, p.accrued_reward) < 0:
            return False
    return True


def inv_paid_not_ahead_of_index(c: GaugeConfig, s: GaugeState) -> bool:
    return all(p.reward_per_unit_paid <= s.reward_per_unit_stored for p in s.positions.values())


def inv_period_covers_last_update(c: GaugeConfig, s: GaugeState) -> bool:
    if s.period_end == 0:
        return True
    return s.period_end >= s.last_update_time


def inv_rate_zero_iff_unfunded(c: GaugeConfig, s: GaugeState) -> bool:
    return (s.reward_rate == 0) == (s.period_end == 0)


def inv_fees_zero_when_not_pool(c: GaugeConfig, s: GaugeState) -> bool:
    if c.is_pool:
        return True
    return s.fees0 == 0 and s.fees1 == 0


def inv_fees_within_threshold(c: GaugeConfig, s: GaugeState) -> bool:
    # Anything above the threshold is forwarded by the same funding step.
    return s.fees0 <= c.fee_threshold and s.fees1 <= c.fee_threshold


INVARIANT_REGISTRY: dict[str, Callable[[GaugeConfig, GaugeState], bool]] = {
    "inv_total_matches_balances": inv_total_matches_balances,
    "inv_fields_in_domain": inv_fields_in_domain,
    "inv_paid_not_ahead_of_index": inv_paid_not_ahead_of_index,
    "inv_period_covers_last_update": inv_period_covers_last_update,
    "inv_rate_zero_iff_unfunded": inv_rate_zero_iff_unfunded,
    "inv_fees_zero_when_not_pool": inv_fees_zero_when_not_pool,
    "inv_fees_within_threshold": inv_fees_within_threshold,
}


def check_all(config: GaugeConfig, state: GaugeState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(config, state)
    ]


def check_transition(pre: GaugeState, post: GaugeState) -> list[str]:
    violations: list[str] = []
    if post.reward_per_unit_stored < pre.reward_per_unit_stored:
        violations.append("inv_index_monotone")
    if post.last_update_time < pre.last_update_time:
        violations.append("inv_last_update_monotone")
    return violations
