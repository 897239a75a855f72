"""
Fee collector: batch captured trading fees and forward them once large enough.

The pattern mirrors dust-carry fee splitting: amounts below the forwarding
threshold are carried in the accumulator, never dropped, and resurface in a
later funding cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .types import GaugeConfig, GaugeState, Transfer


@dataclass(frozen=True)
class FeeCollection:
    """Outcome of one claim-and-forward pass."""

    claimed0: int
    claimed1: int
    forwarded0: int
    forwarded1: int
    state: GaugeState

    @property
    def realized(self) -> bool:
        return self.claimed0 > 0 or self.claimed1 > 0


def collect_fees(
    config: GaugeConfig,
    state: GaugeState,
    claimed0: int,
    claimed1: int,
) -> FeeCollection:
    """Fold realized fees into the accumulators and decide what to forward.

    A non-pool gauge is a no-op returning zero claims. A leg is forwarded in
    full only when its running total strictly exceeds `config.fee_threshold`.
    """
    if not config.is_pool or (claimed0 == 0 and claimed1 == 0):
        return FeeCollection(0, 0, 0, 0, state)

    total0 = state.fees0 + claimed0
    total1 = state.fees1 + claimed1

    forwarded0 = total0 if total0 > config.fee_threshold else 0
    forwarded1 = total1 if total1 > config.fee_threshold else 0

    new_state = replace(
        state,
        fees0=total0 - forwarded0,
        fees1=total1 - forwarded1,
    )
    return FeeCollection(claimed0, claimed1, forwarded0, forwarded1, new_state)


def forward_transfers(config: GaugeConfig, collection: FeeCollection) -> tuple[Transfer, ...]:
    out: list[Transfer] = []
    for asset, amount in (
        (config.fee_asset0, collection.forwarded0),
        (config.fee_asset1, collection.forwarded1),
    ):
        if amount > 0:
            out.append(
                Transfer(
                    asset=asset,
                    sender=config.gauge_id,
                    recipient=config.fee_recipient,
                    amount=amount,
                    notify_recipient=True,
                )
            )
    return tuple(out)
