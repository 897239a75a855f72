"""Guard functions for the gauge kernel.

One pure function per action. Each returns None when the action is allowed in
the given PRE-state, or a rejection code naming the failed precondition.
Codes map one-to-one onto the exception types in `errors.py`.
"""

from __future__ import annotations

from .math import max_safe_reward_rate
from .schedule import plan_funding
from .types import ActionParams, GaugeConfig, GaugeState

UNAUTHORIZED = "unauthorized"
ZERO_AMOUNT = "zero_amount"
POOL_NOT_AUTHORIZED = "pool_not_authorized"
INSUFFICIENT_BALANCE = "insufficient_balance"
DEGENERATE_REWARD_RATE = "degenerate_reward_rate"
REWARD_RATE_OVERFLOW_RISK = "reward_rate_overflow_risk"
STALE_TIMESTAMP = "stale_timestamp"


def guard_clock(config: GaugeConfig, state: GaugeState, params: ActionParams) -> str | None:
    """Shared by every action: time may not run behind the accrual checkpoint.

    Settling at an earlier `now` would rewind `last_update_time` and count the
    same interval twice.
    """
    if params.now < state.last_update_time:
        return STALE_TIMESTAMP
    return None


def guard_deposit(config: GaugeConfig, state: GaugeState, params: ActionParams) -> str | None:
    if params.amount == 0:
        return ZERO_AMOUNT
    if not params.gauge_alive:
        return POOL_NOT_AUTHORIZED
    return None


def guard_withdraw(config: GaugeConfig, state: GaugeState, params: ActionParams) -> str | None:
    if params.amount > state.position(params.caller).balance:
        return INSUFFICIENT_BALANCE
    return None


def guard_claim(config: GaugeConfig, state: GaugeState, params: ActionParams) -> str | None:
    # The authority may claim for any account (batch distribution).
    if params.caller != params.account and params.caller != config.authority:
        return UNAUTHORIZED
    return None


def guard_notify_reward(config: GaugeConfig, state: GaugeState, params: ActionParams) -> str | None:
    if params.caller != config.authority:
        return UNAUTHORIZED
    if params.amount == 0:
        return ZERO_AMOUNT

    plan = plan_funding(config, state, params)
    if plan.reward_rate == 0:
        return DEGENERATE_REWARD_RATE
    if plan.reward_rate > max_safe_reward_rate(plan.reward_balance_after, params.now):
        return REWARD_RATE_OVERFLOW_RISK
    return None
