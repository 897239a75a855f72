"""Effect functions for the gauge kernel.

One pure function per action, computing the notifications of an accepted
step. They read both PRE- and POST-state because some observables (the
claimed reward) are zeroed by the update itself.
"""

from __future__ import annotations

from .accrual import earned_by
from .types import Action, ActionParams, Effect, Event, GaugeConfig, GaugeState


def effect_deposit(
    config: GaugeConfig, pre: GaugeState, post: GaugeState, params: ActionParams,
) -> tuple[Effect, ...]:
    return (
        Effect(
            event=Event.DEPOSIT,
            fields={
                "sender": params.caller,
                "recipient": params.account or params.caller,
                "amount": params.amount,
            },
        ),
    )


def effect_withdraw(
    config: GaugeConfig, pre: GaugeState, post: GaugeState, params: ActionParams,
) -> tuple[Effect, ...]:
    return (Effect(event=Event.WITHDRAW, fields={"sender": params.caller, "amount": params.amount}),)


def effect_claim(
    config: GaugeConfig, pre: GaugeState, post: GaugeState, params: ActionParams,
) -> tuple[Effect, ...]:
    reward = earned_by(pre, params.account, params.now)
    if reward == 0:
        return ()
    return (Effect(event=Event.CLAIM_REWARDS, fields={"account": params.account, "amount": reward}),)


def effect_notify_reward(
    config: GaugeConfig, pre: GaugeState, post: GaugeState, params: ActionParams,
) -> tuple[Effect, ...]:
    out: list[Effect] = []
    fees_realized = params.fees_claimed0 > 0 or params.fees_claimed1 > 0
    if params.action == Action.NOTIFY_REWARD and config.is_pool and fees_realized:
        out.append(
            Effect(
                event=Event.CLAIM_FEES,
                fields={
                    "sender": params.caller,
                    "amount0": params.fees_claimed0,
                    "amount1": params.fees_claimed1,
                },
            )
        )
    out.append(Effect(event=Event.NOTIFY_REWARD, fields={"sender": params.caller, "amount": params.amount}))
    return tuple(out)
