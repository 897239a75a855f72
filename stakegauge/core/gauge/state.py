"""State construction and serialization for the gauge kernel.

`initial_state()` returns the all-zero state a gauge starts from.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s` for all valid states.
The dict form is JSON-compatible: account keys are strings, epoch keys are
decimal strings, and positions are sorted by account.
"""

from __future__ import annotations

from typing import Any, Mapping

from ...state.canonical import canonical_json_bytes, sha256_hex
from .types import GaugeState, Position

SCALAR_VAR_NAMES: tuple[str, ...] = (
    "total_staked",
    "reward_per_unit_stored",
    "last_update_time",
    "reward_rate",
    "period_end",
    "fees0",
    "fees1",
)
POSITION_VAR_NAMES: tuple[str, ...] = tuple(Position.__dataclass_fields__)


def initial_state() -> GaugeState:
    """Return the canonical initial GaugeState (all zero, rate zero)."""
    return GaugeState()


def _require_uint(val: Any, name: str) -> int:
    if not isinstance(val, int) or isinstance(val, bool):
        raise TypeError(f"state var {name!r} must be int, got {type(val).__name__}")
    if val < 0:
        raise ValueError(f"state var {name!r} must be non-negative: {val}")
    return int(val)  # normalize int subclasses


def state_to_dict(state: GaugeState) -> dict[str, Any]:
    """Serialize a GaugeState to a plain dict."""
    out: dict[str, Any] = {name: getattr(state, name) for name in SCALAR_VAR_NAMES}
    out["positions"] = {
        account: {name: getattr(pos, name) for name in POSITION_VAR_NAMES}
        for account, pos in sorted(state.positions.items())
    }
    out["rate_by_epoch"] = {str(epoch): rate for epoch, rate in sorted(state.rate_by_epoch.items())}
    return out


def state_from_dict(d: Mapping[str, Any]) -> GaugeState:
    """Deserialize a dict to a GaugeState. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {name: _require_uint(d[name], name) for name in SCALAR_VAR_NAMES}

    positions: dict[str, Position] = {}
    for account, raw in d["positions"].items():
        if not isinstance(account, str) or not account:
            raise TypeError("position keys must be non-empty str")
        positions[account] = Position(
            **{name: _require_uint(raw[name], f"{account}.{name}") for name in POSITION_VAR_NAMES}
        )

    rate_by_epoch: dict[int, int] = {}
    for epoch, rate in d["rate_by_epoch"].items():
        rate_by_epoch[int(epoch)] = _require_uint(rate, f"rate_by_epoch[{epoch}]")

    return GaugeState(positions=positions, rate_by_epoch=rate_by_epoch, **kwargs)


def state_digest(state: GaugeState) -> str:
    """sha256 commitment over the canonical JSON encoding of the state."""
    return sha256_hex(canonical_json_bytes(state_to_dict(state)))
