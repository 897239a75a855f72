"""Epoch reward scheduler: compute the next funding stream.

Funding always targets the next calendar-aligned epoch boundary, not a fixed
duration from the call time. Unspent reward of an active stream (leftover)
is rolled into the new rate.

`plan_funding()` is shared by the guard (to reject degenerate or unsafe
rates) and the update (to apply them), so both see identical numbers.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .accrual import settle
from .fees import FeeCollection, collect_fees
from .math import epoch_start, next_reward_rate, time_to_next_epoch
from .types import Action, ActionParams, GaugeConfig, GaugeState


@dataclass(frozen=True)
class FundingPlan:
    collection: FeeCollection
    reward_rate: int
    time_to_next: int
    reward_balance_after: int


def plan_funding(config: GaugeConfig, state: GaugeState, params: ActionParams) -> FundingPlan:
    """Fee pass and rate computation for a funding step (PRE-state in, nothing applied)."""
    if params.action == Action.NOTIFY_REWARD:
        collection = collect_fees(config, state, params.fees_claimed0, params.fees_claimed1)
    else:
        collection = FeeCollection(0, 0, 0, 0, state)

    now = params.now
    rate = next_reward_rate(params.amount, now, state.period_end, state.reward_rate)

    balance_after = params.reward_balance + params.amount
    if config.fee_asset0 == config.reward_asset:
        balance_after -= collection.forwarded0
    if config.fee_asset1 == config.reward_asset:
        balance_after -= collection.forwarded1

    return FundingPlan(
        collection=collection,
        reward_rate=rate,
        time_to_next=time_to_next_epoch(now),
        reward_balance_after=balance_after,
    )


def apply_funding_plan(state: GaugeState, plan: FundingPlan, now: int) -> GaugeState:
    """Close out the index, then start the new stream at *now*."""
    settled = settle(plan.collection.state, None, now)
    return replace(
        settled,
        reward_rate=plan.reward_rate,
        rate_by_epoch={**settled.rate_by_epoch, epoch_start(now): plan.reward_rate},
        last_update_time=now,
        period_end=now + plan.time_to_next,
    )

