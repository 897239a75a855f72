"""
Scenario replay: drive a `GaugeEngine` through a timed list of calls.

A scenario is a mapping (usually loaded from YAML)::

    config: {gauge: {...}, relay: {...}}   # same shape as load_gauge_config
    mint:
      - {holder: alice, asset: lp:usdc-weth, amount: 1000}
    calls:
      - {at: 1000, op: deposit, sender: alice, amount: 100}
      - {at: 1000, op: notify_reward_amount, sender: voter, amount: 604800}
      - {at: 5000, op: accrue_fees, fee0: 10, fee1: 20}
      - {at: 9000, op: set_alive, alive: false}
      - {at: 9000, op: withdraw, sender: alice, amount: 500, expect_error: InsufficientBalance}

Rejected calls are recorded, not raised, unless they contradict
`expect_error`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..core.gauge.errors import GaugeError
from ..core.gauge.state import state_to_dict
from ..state.balances import TokenBank
from .collaborators import BankFeePool, RecordingFeeRecipient, StaticOracle
from .config import parse_config
from .gauge_engine import GaugeEngine


class ScenarioError(ValueError):
    """Raised for malformed scenarios or unmet `expect_error` expectations."""


@dataclass
class ScenarioClock:
    now: int = 0

    def __call__(self) -> int:
        return self.now


@dataclass
class ReplayReport:
    state: Dict[str, Any]
    events: List[Dict[str, Any]] = field(default_factory=list)
    rejections: List[Dict[str, Any]] = field(default_factory=list)
    balances: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "events": self.events,
            "rejections": self.rejections,
            "balances": self.balances,
        }


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ScenarioError(f"{name} must be a non-negative int")
    return int(value)


def _run_call(engine: GaugeEngine, call: Mapping[str, Any], *, oracle: StaticOracle, pool: Optional[BankFeePool]) -> None:
    op = call.get("op")
    sender = call.get("sender", "")
    if op == "deposit":
        engine.deposit(sender, _require_int(call.get("amount"), name="amount"), call.get("recipient"))
    elif op == "withdraw":
        engine.withdraw(sender, _require_int(call.get("amount"), name="amount"))
    elif op == "claim":
        engine.claim(sender, call.get("account", sender))
    elif op == "notify_reward_amount":
        engine.notify_reward_amount(sender, _require_int(call.get("amount"), name="amount"))
    elif op == "notify_reward_without_claim":
        engine.notify_reward_without_claim(sender, _require_int(call.get("amount"), name="amount"))
    elif op == "accrue_fees":
        if pool is None:
            raise ScenarioError("accrue_fees requires a pool gauge")
        pool.accrue(
            engine.config.gauge_id,
            _require_int(call.get("fee0", 0), name="fee0"),
            _require_int(call.get("fee1", 0), name="fee1"),
        )
    elif op == "set_alive":
        oracle.set_alive(engine.config.gauge_id, bool(call.get("alive")))
    else:
        raise ScenarioError(f"unknown op: {op!r}")


def run_scenario(scenario: Mapping[str, Any]) -> ReplayReport:
    if not isinstance(scenario, Mapping):
        raise ScenarioError("scenario must be a mapping")
    try:
        config, relay = parse_config(scenario.get("config"))
    except (TypeError, ValueError) as exc:
        raise ScenarioError(f"invalid config: {exc}") from exc

    bank = TokenBank()
    for m in scenario.get("mint", []) or []:
        bank.mint(str(m["holder"]), str(m["asset"]), _require_int(m.get("amount"), name="mint.amount"))

    clock = ScenarioClock()
    oracle = StaticOracle()
    pool: Optional[BankFeePool] = None
    recipient: Optional[RecordingFeeRecipient] = None
    if config.is_pool:
        pool = BankFeePool(bank, f"pool:{config.staking_asset}", config.fee_asset0, config.fee_asset1)
        recipient = RecordingFeeRecipient(config.fee_recipient)

    engine = GaugeEngine(
        config, bank=bank, oracle=oracle, fee_pool=pool, fee_recipient=recipient, relay=relay, clock=clock,
    )

    rejections: List[Dict[str, Any]] = []
    for i, call in enumerate(scenario.get("calls", []) or []):
        if not isinstance(call, Mapping):
            raise ScenarioError(f"call {i} must be a mapping")
        at = _require_int(call.get("at"), name=f"calls[{i}].at")
        if at < clock.now:
            raise ScenarioError(f"call {i} goes back in time ({at} < {clock.now})")
        clock.now = at
        expected = call.get("expect_error")
        try:
            _run_call(engine, call, oracle=oracle, pool=pool)
        except GaugeError as exc:
            name = type(exc).__name__
            if expected is not None and expected != name:
                raise ScenarioError(f"call {i}: expected {expected}, got {name}") from exc
            rejections.append({"i": i, "op": call.get("op"), "error": name, "detail": str(exc)})
            continue
        if expected is not None:
            raise ScenarioError(f"call {i}: expected {expected}, but the call succeeded")

    balances: Dict[str, Dict[str, int]] = {}
    for (holder, asset), amount in sorted(bank.get_all_balances().items()):
        balances.setdefault(holder, {})[asset] = amount

    return ReplayReport(
        state=state_to_dict(engine.state),
        events=[{"event": e.event.value, **dict(e.fields)} for e in engine.events],
        rejections=rejections,
        balances=balances,
    )
