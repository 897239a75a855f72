"""
External collaborators of a gauge, defined only by their interface.

In-memory implementations backed by a `TokenBank` are provided for
simulation, replay and tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Protocol, Tuple

from ..state.balances import AssetId, TokenBank


class EmissionOracle(Protocol):
    def is_alive(self, gauge_id: str) -> bool:
        """Whether the gauge is still eligible to receive emissions (and deposits)."""
        ...


class FeePool(Protocol):
    def tokens(self) -> Tuple[AssetId, AssetId]:
        ...

    def claim_fees(self, claimer: str) -> Tuple[int, int]:
        """Transfer the claimer's realized fees to it; return both leg amounts."""
        ...


class FeeRecipient(Protocol):
    def notify_reward_amount(self, asset: AssetId, amount: int) -> None:
        """Called after `amount` of `asset` has been transferred to the recipient."""
        ...


@dataclass
class StaticOracle:
    """Oracle answering from an explicit table; unknown gauges use `default`."""

    default: bool = True
    _alive: Dict[str, bool] = field(default_factory=dict)

    def set_alive(self, gauge_id: str, alive: bool) -> None:
        self._alive[gauge_id] = bool(alive)

    def is_alive(self, gauge_id: str) -> bool:
        return self._alive.get(gauge_id, self.default)


class BankFeePool:
    """
    Pool whose trading fees accrue per claimer and are paid out on claim.

    `accrue()` simulates swaps: it mints fee tokens into an escrow holder
    earmarked for one claimer (the gauge staking the pool's LP supply).
    All fee state lives in the bank, so a rolled-back claim leaves the fees
    claimable.
    """

    def __init__(self, bank: TokenBank, pool_id: str, token0: AssetId, token1: AssetId):
        self._bank = bank
        self.pool_id = pool_id
        self._tokens = (token0, token1)

    def _escrow(self, claimer: str) -> str:
        return f"{self.pool_id}/fees/{claimer}"

    def tokens(self) -> Tuple[AssetId, AssetId]:
        return self._tokens

    def accrue(self, claimer: str, fee0: int, fee1: int) -> None:
        token0, token1 = self._tokens
        self._bank.mint(self._escrow(claimer), token0, fee0)
        self._bank.mint(self._escrow(claimer), token1, fee1)

    def owed(self, claimer: str) -> Tuple[int, int]:
        token0, token1 = self._tokens
        escrow = self._escrow(claimer)
        return self._bank.balance_of(escrow, token0), self._bank.balance_of(escrow, token1)

    def claim_fees(self, claimer: str) -> Tuple[int, int]:
        fee0, fee1 = self.owed(claimer)
        token0, token1 = self._tokens
        if fee0 > 0:
            self._bank.transfer(token0, self._escrow(claimer), claimer, fee0)
        if fee1 > 0:
            self._bank.transfer(token1, self._escrow(claimer), claimer, fee1)
        return fee0, fee1


@dataclass
class RecordingFeeRecipient:
    """Fee-distribution recipient that records every notification."""

    recipient_id: str
    notifications: List[Tuple[AssetId, int]] = field(default_factory=list)

    def notify_reward_amount(self, asset: AssetId, amount: int) -> None:
        if amount <= 0:
            raise ValueError("amount must be positive")
        self.notifications.append((asset, amount))

    def total_for(self, asset: AssetId) -> int:
        return sum(amount for a, amount in self.notifications if a == asset)
