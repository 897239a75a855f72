"""Data types for the `gauge` staking kernel.

All types are frozen dataclasses (immutable). Mapping fields are treated as
read-only snapshots: updates always build a new dict.

Units/conventions:
- `reward_per_unit_*` values are reward units per staked unit, scaled by 1e18.
- `reward_rate` is integer reward units per second (not scaled).
- timestamps are integer seconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Mapping


@unique
class Action(Enum):
    """One member per mutating entry point."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    CLAIM = "claim"
    NOTIFY_REWARD = "notify_reward"
    NOTIFY_REWARD_WITHOUT_CLAIM = "notify_reward_without_claim"


@unique
class Event(Enum):
    """Observable notifications emitted by accepted steps."""
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    CLAIM_REWARDS = "ClaimRewards"
    NOTIFY_REWARD = "NotifyReward"
    CLAIM_FEES = "ClaimFees"


@dataclass(frozen=True)
class GaugeConfig:
    """Immutable per-gauge configuration, fixed at construction."""

    gauge_id: str
    staking_asset: str
    reward_asset: str
    authority: str
    fee_recipient: str = ""
    oracle: str = ""
    is_pool: bool = False
    fee_asset0: str = ""
    fee_asset1: str = ""
    fee_threshold: int = 604_800

    def __post_init__(self) -> None:
        for name in ("gauge_id", "staking_asset", "reward_asset", "authority"):
            v = getattr(self, name)
            if not isinstance(v, str) or not v:
                raise ValueError(f"{name} must be a non-empty str")
        if not isinstance(self.fee_threshold, int) or isinstance(self.fee_threshold, bool):
            raise TypeError("fee_threshold must be an int")
        if self.fee_threshold <= 0:
            raise ValueError(f"fee_threshold must be positive: {self.fee_threshold}")
        if self.is_pool:
            for name in ("fee_asset0", "fee_asset1", "fee_recipient"):
                if not getattr(self, name):
                    raise ValueError(f"{name} is required when is_pool is set")


@dataclass(frozen=True)
class Position:
    """Per-account stake and settlement record. The all-zero value is the default."""

    balance: int = 0
    reward_per_unit_paid: int = 0
    accrued_reward: int = 0


ZERO_POSITION = Position()


@dataclass(frozen=True)
class GaugeState:
    """Complete kernel state of one gauge."""

    # Stake ledger
    total_staked: int = 0
    positions: Mapping[str, Position] = field(default_factory=dict)

    # Reward accumulator
    reward_per_unit_stored: int = 0
    last_update_time: int = 0

    # Scheduler
    reward_rate: int = 0
    period_end: int = 0
    rate_by_epoch: Mapping[int, int] = field(default_factory=dict)

    # Fee collector
    fees0: int = 0
    fees1: int = 0

    def position(self, account: str) -> Position:
        return self.positions.get(account, ZERO_POSITION)


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields default to 0/empty.

    `caller` is the already-resolved sender. `account` is the deposit
    recipient or the claim target.
    """

    action: Action
    now: int
    caller: str
    account: str = ""
    amount: int = 0
    gauge_alive: bool = False      # deposit
    fees_claimed0: int = 0         # notify_reward
    fees_claimed1: int = 0         # notify_reward
    reward_balance: int = 0        # notify_*: reward-asset balance before this step's transfers


@dataclass(frozen=True)
class Transfer:
    """An asset movement requested by a step, executed by the shell in order.

    `notify_recipient` marks fee forwards: after the transfer the recipient's
    `notify_reward_amount(asset, amount)` hook is invoked.
    """

    asset: str
    sender: str
    recipient: str
    amount: int
    notify_recipient: bool = False


@dataclass(frozen=True)
class Effect:
    """A notification emitted by an accepted step."""

    event: Event
    fields: Mapping[str, int | str] = field(default_factory=dict)


@dataclass(frozen=True)
class StepResult:
    """Result of a single kernel step."""

    accepted: bool
    state: GaugeState | None = None
    effects: tuple[Effect, ...] = ()
    transfers: tuple[Transfer, ...] = ()
    rejection: str | None = None
