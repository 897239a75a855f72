"""State transition functions for the gauge kernel.

One pure function per action. Each returns the new `GaugeState` plus the
ordered asset transfers the shell must execute.

Semantics:
- updates evaluate against the PRE-state, which the guard has accepted,
- the affected account is settled before any balance or rate change,
- transfers come last and never feed back into the state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .accrual import settle
from .fees import forward_transfers
from .schedule import apply_funding_plan, plan_funding
from .types import ActionParams, GaugeConfig, GaugeState, Position, Transfer


@dataclass(frozen=True)
class Outcome:
    state: GaugeState
    transfers: tuple[Transfer, ...] = ()


def _with_balance(state: GaugeState, account: str, balance: int, total: int) -> GaugeState:
    pos = state.position(account)
    return replace(
        state,
        total_staked=total,
        positions={**state.positions, account: replace(pos, balance=balance)},
    )


def apply_deposit(config: GaugeConfig, state: GaugeState, params: ActionParams) -> Outcome:
    recipient = params.account or params.caller
    s = settle(state, recipient, params.now)
    s = _with_balance(
        s,
        recipient,
        s.position(recipient).balance + params.amount,
        s.total_staked + params.amount,
    )
    pull = Transfer(config.staking_asset, params.caller, config.gauge_id, params.amount)
    return Outcome(s, (pull,))


def apply_withdraw(config: GaugeConfig, state: GaugeState, params: ActionParams) -> Outcome:
    s = settle(state, params.caller, params.now)
    s = _with_balance(
        s,
        params.caller,
        s.position(params.caller).balance - params.amount,
        s.total_staked - params.amount,
    )
    if params.amount == 0:
        return Outcome(s)
    push = Transfer(config.staking_asset, config.gauge_id, params.caller, params.amount)
    return Outcome(s, (push,))


def apply_claim(config: GaugeConfig, state: GaugeState, params: ActionParams) -> Outcome:
    s = settle(state, params.account, params.now)
    pos = s.position(params.account)
    reward = pos.accrued_reward
    if reward == 0:
        return Outcome(s)
    # Zero before paying out so a re-entrant claim finds nothing.
    s = replace(
        s,
        positions={
            **s.positions,
            params.account: Position(pos.balance, pos.reward_per_unit_paid, 0),
        },
    )
    pay = Transfer(config.reward_asset, config.gauge_id, params.account, reward)
    return Outcome(s, (pay,))


def apply_notify_reward(config: GaugeConfig, state: GaugeState, params: ActionParams) -> Outcome:
    plan = plan_funding(config, state, params)
    s = apply_funding_plan(state, plan, params.now)
    pull = Transfer(config.reward_asset, params.caller, config.gauge_id, params.amount)
    return Outcome(s, forward_transfers(config, plan.collection) + (pull,))
