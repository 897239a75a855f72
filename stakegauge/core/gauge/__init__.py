"""`gauge`: pure-Python staking and reward-distribution kernel.

Semantics:
- deterministic, integer-only transitions (floor division, 1e18 index scale),
- immutable state (frozen dataclasses),
- fail-closed guards and invariant checks.

The kernel does not move assets, read clocks or call collaborators; the
`GaugeEngine` shell in `stakegauge.integration` does, inside one atomic call.

Public API:
- `initial_state() -> GaugeState`
- `step(config, state, params) -> StepResult`
- `step_or_raise(config, state, params) -> StepResult` (raises on rejection)
"""

from .accrual import current_index, earned_by, settle
from .engine import step, step_or_raise
from .errors import (
    DegenerateRewardRate,
    GaugeError,
    GaugeInvariantError,
    GaugeOverflowError,
    InsufficientBalance,
    InvalidArgument,
    PoolNotAuthorized,
    ReentrancyError,
    RelayError,
    RewardRateOverflowRisk,
    StaleTimestamp,
    Unauthorized,
    ZeroAmount,
)
from .math import PRECISION, WEEK, epoch_next, epoch_start
from .state import initial_state, state_digest, state_from_dict, state_to_dict
from .types import (
    Action,
    ActionParams,
    Effect,
    Event,
    GaugeConfig,
    GaugeState,
    Position,
    StepResult,
    Transfer,
)

__all__ = [
    "step",
    "step_or_raise",
    "settle",
    "current_index",
    "earned_by",
    "initial_state",
    "state_digest",
    "state_from_dict",
    "state_to_dict",
    "PRECISION",
    "WEEK",
    "epoch_next",
    "epoch_start",
    "Action",
    "ActionParams",
    "Effect",
    "Event",
    "GaugeConfig",
    "GaugeState",
    "Position",
    "StepResult",
    "Transfer",
    "GaugeError",
    "Unauthorized",
    "ZeroAmount",
    "PoolNotAuthorized",
    "InsufficientBalance",
    "DegenerateRewardRate",
    "RewardRateOverflowRisk",
    "GaugeOverflowError",
    "GaugeInvariantError",
    "ReentrancyError",
    "RelayError",
    "StaleTimestamp",
    "InvalidArgument",
]
