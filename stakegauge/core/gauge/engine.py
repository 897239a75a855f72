"""Dispatch-table engine for the gauge kernel.

``step(config, state, params)`` is the single entry point. It:

1. Validates parameter domains (256-bit unsigned amounts and timestamps)
   and required identities.
2. Rejects any `now` behind the accrual checkpoint.
3. Dispatches to the correct guard / update / effect functions.
4. Checks all state invariants and the transition invariants on the post-state.
5. Returns a ``StepResult`` (accepted or rejected with reason).

The kernel never performs transfers or reads the clock; the shell supplies
``now``, the oracle answer and balances in ``ActionParams`` and executes the
returned transfers.
"""

from __future__ import annotations

from typing import Callable

from .effects import effect_claim, effect_deposit, effect_notify_reward, effect_withdraw
from .errors import (
    DegenerateRewardRate,
    GaugeError,
    GaugeInvariantError,
    GaugeOverflowError,
    InsufficientBalance,
    InvalidArgument,
    PoolNotAuthorized,
    RewardRateOverflowRisk,
    StaleTimestamp,
    Unauthorized,
    ZeroAmount,
)
from .guards import (
    DEGENERATE_REWARD_RATE,
    INSUFFICIENT_BALANCE,
    POOL_NOT_AUTHORIZED,
    REWARD_RATE_OVERFLOW_RISK,
    STALE_TIMESTAMP,
    UNAUTHORIZED,
    ZERO_AMOUNT,
    guard_claim,
    guard_clock,
    guard_deposit,
    guard_notify_reward,
    guard_withdraw,
)
from .invariants import check_all, check_transition
from .math import MAX_UINT256
from .types import Action, ActionParams, Effect, GaugeConfig, GaugeState, StepResult
from .updates import Outcome, apply_claim, apply_deposit, apply_notify_reward, apply_withdraw

GuardFn = Callable[[GaugeConfig, GaugeState, ActionParams], "str | None"]
UpdateFn = Callable[[GaugeConfig, GaugeState, ActionParams], Outcome]
EffectFn = Callable[[GaugeConfig, GaugeState, GaugeState, ActionParams], "tuple[Effect, ...]"]

_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn, EffectFn]] = {
    Action.DEPOSIT: (guard_deposit, apply_deposit, effect_deposit),
    Action.WITHDRAW: (guard_withdraw, apply_withdraw, effect_withdraw),
    Action.CLAIM: (guard_claim, apply_claim, effect_claim),
    Action.NOTIFY_REWARD: (guard_notify_reward, apply_notify_reward, effect_notify_reward),
    Action.NOTIFY_REWARD_WITHOUT_CLAIM: (guard_notify_reward, apply_notify_reward, effect_notify_reward),
}

_PARAM_FIELDS: tuple[str, ...] = ("now", "amount", "fees_claimed0", "fees_claimed1", "reward_balance")


def _validate_params(params: ActionParams) -> str | None:
    """Check parameter domain bounds. Returns rejection reason or None."""
    for field in _PARAM_FIELDS:
        val = getattr(params, field)
        if not isinstance(val, int) or isinstance(val, bool):
            return f"param_domain:{field}"
        if val < 0 or val > MAX_UINT256:
            return f"param_domain:{field}"
    return None


def _validate_identities(params: ActionParams) -> str | None:
    if not params.caller:
        return "invalid_argument:caller"
    if params.action == Action.CLAIM and not params.account:
        return "invalid_argument:account"
    return None


def step(config: GaugeConfig, state: GaugeState, params: ActionParams) -> StepResult:
    """Execute one action against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason string.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return StepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    domain_err = _validate_params(params) or _validate_identities(params)
    if domain_err is not None:
        return StepResult(accepted=False, rejection=domain_err)

    guard_fn, update_fn, effect_fn = entry

    reason = guard_clock(config, state, params) or guard_fn(config, state, params)
    if reason is not None:
        return StepResult(accepted=False, rejection=reason)

    outcome = update_fn(config, state, params)
    new_state = outcome.state

    violations = check_all(config, new_state) + check_transition(state, new_state)
    if violations:
        return StepResult(
            accepted=False,
            rejection=f"invariant:{','.join(violations)}",
        )

    effects = effect_fn(config, state, new_state, params)
    return StepResult(accepted=True, state=new_state, effects=effects, transfers=outcome.transfers)


_GUARD_ERRORS: dict[str, type[GaugeError]] = {
    UNAUTHORIZED: Unauthorized,
    ZERO_AMOUNT: ZeroAmount,
    POOL_NOT_AUTHORIZED: PoolNotAuthorized,
    INSUFFICIENT_BALANCE: InsufficientBalance,
    DEGENERATE_REWARD_RATE: DegenerateRewardRate,
    REWARD_RATE_OVERFLOW_RISK: RewardRateOverflowRisk,
    STALE_TIMESTAMP: StaleTimestamp,
}


def step_or_raise(config: GaugeConfig, state: GaugeState, params: ActionParams) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        GaugeOverflowError: Parameter outside the 256-bit domain.
        InvalidArgument: Empty caller or claim account.
        StaleTimestamp: `now` is earlier than the last accrual checkpoint.
        GaugeInvariantError: Post-state violates one or more invariants.
        Unauthorized, ZeroAmount, PoolNotAuthorized, InsufficientBalance,
        DegenerateRewardRate, RewardRateOverflowRisk: Guard not satisfied.
    """
    result = step(config, state, params)
    if result.accepted:
        return result

    reason = result.rejection or ""
    if reason.startswith("param_domain:"):
        raise GaugeOverflowError(reason)
    if reason.startswith("invalid_argument:"):
        raise InvalidArgument(reason)
    if reason.startswith("invariant:"):
        violations = reason.removeprefix("invariant:").split(",")
        raise GaugeInvariantError(violations)
    exc_type = _GUARD_ERRORS.get(reason, GaugeError)
    raise exc_type(reason)
