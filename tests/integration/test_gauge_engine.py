from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import threading
from typing import Optional

import pytest

from stakegauge.core.gauge import (
    WEEK,
    DegenerateRewardRate,
    Event,
    GaugeConfig,
    InsufficientBalance,
    InvalidArgument,
    PoolNotAuthorized,
    ReentrancyError,
    RewardRateOverflowRisk,
    StaleTimestamp,
    Unauthorized,
    ZeroAmount,
    initial_state,
)
from stakegauge.integration import BankFeePool, GaugeEngine, RecordingFeeRecipient, StaticOracle
from stakegauge.state import InsufficientFunds, TokenBank

T0 = 2_900 * WEEK

POOL_GAUGE = GaugeConfig(
    gauge_id="gauge:usdc-weth",
    staking_asset="lp:usdc-weth",
    reward_asset="VELO",
    authority="voter",
    oracle="voter",
    is_pool=True,
    fee_recipient="fees-voting-reward",
    fee_asset0="USDC",
    fee_asset1="WETH",
)
PLAIN_GAUGE = GaugeConfig(gauge_id="gauge:plain", staking_asset="LP", reward_asset="VELO", authority="voter")


@dataclass
class ManualClock:
    now: int

    def __call__(self) -> int:
        return self.now


@dataclass
class _Env:
    engine: GaugeEngine
    bank: TokenBank
    clock: ManualClock
    oracle: StaticOracle
    pool: Optional[BankFeePool]
    recipient: Optional[RecordingFeeRecipient]

    @property
    def gauge(self) -> str:
        return self.engine.config.gauge_id


def _env(config: GaugeConfig = POOL_GAUGE, *, now: int = T0, **engine_kwargs: object) -> _Env:
    bank = TokenBank()
    for who in ("alice", "bob"):
        bank.mint(who, config.staking_asset, 1_000)
    bank.mint("voter", config.reward_asset, 100 * WEEK)
    clock = ManualClock(now)
    oracle = StaticOracle()
    pool = recipient = None
    if config.is_pool:
        pool = BankFeePool(bank, "pool:usdc-weth", config.fee_asset0, config.fee_asset1)
        recipient = RecordingFeeRecipient(config.fee_recipient)
    engine = GaugeEngine(
        config, bank=bank, oracle=oracle, fee_pool=pool, fee_recipient=recipient, clock=clock,
        **engine_kwargs,  # type: ignore[arg-type]
    )
    return _Env(engine, bank, clock, oracle, pool, recipient)


def _funded(config: GaugeConfig = POOL_GAUGE) -> _Env:
    env = _env(config)
    env.engine.deposit("alice", 100)
    env.engine.notify_reward_amount("voter", WEEK)
    return env


def test_weekly_stream_pays_full_amount_to_sole_staker() -> None:
    env = _funded()
    assert env.bank.balance_of(env.gauge, "lp:usdc-weth") == 100
    assert env.bank.balance_of(env.gauge, "VELO") == WEEK
    assert env.engine.reward_rate_by_epoch(T0 + 5) == 1

    env.clock.now = T0 + WEEK
    assert env.engine.earned("alice") == WEEK
    assert env.engine.left() == 0

    env.engine.claim("alice", "alice")
    assert env.bank.balance_of("alice", "VELO") == WEEK
    assert env.engine.earned("alice") == 0
    assert [e.event for e in env.engine.events] == [Event.DEPOSIT, Event.NOTIFY_REWARD, Event.CLAIM_REWARDS]

    env.engine.withdraw("alice", 100)
    assert env.bank.balance_of("alice", "lp:usdc-weth") == 1_000
    assert env.engine.total_staked == 0


def test_views_track_the_active_stream() -> None:
    env = _funded()
    env.clock.now = T0 + 1_000
    assert env.engine.last_time_reward_applicable() == T0 + 1_000
    assert env.engine.left() == WEEK - 1_000
    assert env.engine.reward_per_unit() == 10 * 10**18
    env.clock.now = T0 + 2 * WEEK
    assert env.engine.last_time_reward_applicable() == T0 + WEEK
    assert env.engine.reward_rate_by_epoch(T0 + WEEK) == 0
    assert env.engine.snapshot()["period_end"] == T0 + WEEK


def test_deposit_for_recipient_pulls_from_caller() -> None:
    env = _env()
    env.engine.deposit("alice", 40, "bob")
    assert env.engine.balance_of("bob") == 40
    assert env.engine.balance_of("alice") == 0
    assert env.bank.balance_of("alice", "lp:usdc-weth") == 960
    assert env.bank.balance_of("bob", "lp:usdc-weth") == 1_000


def test_third_party_claim_is_rejected() -> None:
    env = _funded()
    env.clock.now = T0 + 100
    before = env.bank.get_all_balances()
    with pytest.raises(Unauthorized):
        env.engine.claim("mallory", "alice")
    assert env.bank.get_all_balances() == before
    assert env.engine.earned("alice") == 100


def test_authority_may_claim_on_behalf_and_reward_goes_to_account() -> None:
    env = _funded()
    env.clock.now = T0 + 100
    env.engine.claim("voter", "alice")
    assert env.bank.balance_of("alice", "VELO") == 100
    assert env.bank.balance_of("voter", "VELO") == 99 * WEEK


def test_withdraw_over_balance_changes_nothing() -> None:
    env = _funded()
    env.clock.now = T0 + 100
    before_bank = env.bank.get_all_balances()
    before_state = env.engine.state
    with pytest.raises(InsufficientBalance):
        env.engine.withdraw("alice", 101)
    assert env.bank.get_all_balances() == before_bank
    assert env.engine.state == before_state


def test_dead_gauge_blocks_deposits_only() -> None:
    env = _funded()
    env.oracle.set_alive(env.gauge, False)
    with pytest.raises(PoolNotAuthorized):
        env.engine.deposit("bob", 10)
    env.clock.now = T0 + 50
    env.engine.claim("alice", "alice")
    env.engine.withdraw("alice", 100)
    assert env.bank.balance_of("alice", "VELO") == 50
    assert env.bank.balance_of("alice", "lp:usdc-weth") == 1_000


def test_zero_deposit_rejected() -> None:
    env = _env()
    with pytest.raises(ZeroAmount):
        env.engine.deposit("alice", 0)


def test_deposit_without_tokens_rolls_back_state() -> None:
    env = _env()
    with pytest.raises(InsufficientFunds):
        env.engine.deposit("carol", 5)
    assert env.engine.state == initial_state()
    assert list(env.engine.events) == []


def test_notify_guards() -> None:
    env = _env()
    with pytest.raises(Unauthorized):
        env.engine.notify_reward_amount("alice", WEEK)
    with pytest.raises(ZeroAmount):
        env.engine.notify_reward_amount("voter", 0)
    with pytest.raises(DegenerateRewardRate):
        env.engine.notify_reward_amount("voter", WEEK - 1)
    assert env.bank.balance_of("voter", "VELO") == 100 * WEEK


def test_notify_rejects_rate_the_balance_cannot_back() -> None:
    # A stream at rate 10 whose backing tokens are no longer held by the gauge.
    prior = replace(
        initial_state(), reward_rate=10, period_end=T0 + WEEK, last_update_time=T0, rate_by_epoch={T0: 10},
    )
    env = _env(PLAIN_GAUGE, now=T0 + WEEK // 2, state=prior)
    with pytest.raises(RewardRateOverflowRisk):
        env.engine.notify_reward_amount("voter", WEEK // 2)
    assert env.engine.state == prior


def test_pool_fees_are_claimed_and_forwarded_above_threshold() -> None:
    env = _env()
    assert env.pool is not None and env.recipient is not None
    env.pool.accrue(env.gauge, 700_000, 5)
    env.engine.notify_reward_amount("voter", WEEK)

    assert env.bank.balance_of("fees-voting-reward", "USDC") == 700_000
    assert env.recipient.notifications == [("USDC", 700_000)]
    assert env.bank.balance_of(env.gauge, "WETH") == 5
    assert (env.engine.state.fees0, env.engine.state.fees1) == (0, 5)
    assert env.pool.owed(env.gauge) == (0, 0)

    claim_fees, notify = env.engine.events
    assert claim_fees.event == Event.CLAIM_FEES
    assert dict(claim_fees.fields) == {"sender": "voter", "amount0": 700_000, "amount1": 5}
    assert notify.event == Event.NOTIFY_REWARD


def test_notify_without_claim_leaves_fees_in_pool() -> None:
    env = _env()
    assert env.pool is not None
    env.pool.accrue(env.gauge, 700_000, 5)
    env.engine.notify_reward_without_claim("voter", WEEK)
    assert env.pool.owed(env.gauge) == (700_000, 5)
    assert [e.event for e in env.engine.events] == [Event.NOTIFY_REWARD]


def test_failed_funding_pull_restores_claimed_fees() -> None:
    env = _env()
    assert env.pool is not None and env.recipient is not None
    env.pool.accrue(env.gauge, 700_000, 5)
    with pytest.raises(InsufficientFunds):
        env.engine.notify_reward_amount("voter", 101 * WEEK)
    assert env.pool.owed(env.gauge) == (700_000, 5)
    assert env.bank.balance_of("fees-voting-reward", "USDC") == 0
    assert env.recipient.notifications == []
    assert env.engine.state == initial_state()


def test_failing_fee_recipient_aborts_whole_funding() -> None:
    class FailingRecipient(RecordingFeeRecipient):
        def notify_reward_amount(self, asset: str, amount: int) -> None:
            raise RuntimeError("recipient refused")

    bank = TokenBank()
    bank.mint("voter", "VELO", WEEK)
    pool = BankFeePool(bank, "pool:usdc-weth", "USDC", "WETH")
    pool.accrue(POOL_GAUGE.gauge_id, WEEK + 1, 0)
    engine = GaugeEngine(
        POOL_GAUGE, bank=bank, oracle=StaticOracle(), fee_pool=pool,
        fee_recipient=FailingRecipient("fees-voting-reward"), clock=ManualClock(T0),
    )
    with pytest.raises(RuntimeError):
        engine.notify_reward_amount("voter", WEEK)
    assert pool.owed(POOL_GAUGE.gauge_id) == (WEEK + 1, 0)
    assert bank.balance_of("voter", "VELO") == WEEK
    assert engine.state == initial_state()


def test_reentrant_claim_from_receive_hook_is_blocked() -> None:
    env = _funded()
    env.clock.now = T0 + 100
    attempts: list[BaseException] = []

    def hook(asset: str, sender: str, amount: int) -> None:
        try:
            env.engine.claim("alice", "alice")
        except ReentrancyError as exc:
            attempts.append(exc)

    env.bank.set_receive_hook("alice", hook)
    env.engine.claim("alice", "alice")
    assert len(attempts) == 1
    assert env.bank.balance_of("alice", "VELO") == 100

    # The guard is released once the outer call returns.
    env.bank.set_receive_hook("alice", None)
    env.clock.now = T0 + 150
    env.engine.claim("alice", "alice")
    assert env.bank.balance_of("alice", "VELO") == 150


def test_hook_failure_rolls_back_claim() -> None:
    env = _funded()
    env.clock.now = T0 + 100

    def hook(asset: str, sender: str, amount: int) -> None:
        raise RuntimeError("receiver reverted")

    env.bank.set_receive_hook("alice", hook)
    events_before = list(env.engine.events)
    with pytest.raises(RuntimeError):
        env.engine.claim("alice", "alice")
    assert env.bank.balance_of("alice", "VELO") == 0
    assert env.engine.earned("alice") == 100
    assert list(env.engine.events) == events_before


def test_pool_gauge_requires_collaborators() -> None:
    bank = TokenBank()
    with pytest.raises(ValueError):
        GaugeEngine(POOL_GAUGE, bank=bank, oracle=StaticOracle())
    with pytest.raises(ValueError):
        GaugeEngine(
            POOL_GAUGE, bank=bank, oracle=StaticOracle(),
            fee_pool=BankFeePool(bank, "pool", "WETH", "USDC"),
            fee_recipient=RecordingFeeRecipient("fees-voting-reward"),
        )


def test_concurrent_deposits_are_serialized() -> None:
    env = _env(PLAIN_GAUGE)
    errors: list[BaseException] = []

    def worker(who: str) -> None:
        try:
            for _ in range(50):
                env.engine.deposit(who, 1)
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(who,)) for who in ("alice", "bob")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
    assert env.engine.total_staked == 100
    assert env.bank.balance_of(env.gauge, "LP") == 100


def test_rejections_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    env = _env()
    with caplog.at_level(logging.WARNING, logger="stakegauge.integration.gauge_engine"):
        with pytest.raises(ZeroAmount):
            env.engine.deposit("alice", 0)
    assert any("ZeroAmount" in r.getMessage() for r in caplog.records)


def test_clock_stepping_back_is_rejected_without_effect() -> None:
    env = _funded()
    env.clock.now = T0 + 300_000
    env.engine.withdraw("alice", 0)
    snapshot = env.engine.snapshot()

    env.clock.now = T0 + 100_000
    with pytest.raises(StaleTimestamp):
        env.engine.withdraw("alice", 0)
    with pytest.raises(StaleTimestamp):
        env.engine.deposit("bob", 10)
    with pytest.raises(StaleTimestamp):
        env.engine.claim("alice", "alice")
    assert env.engine.snapshot() == snapshot
    assert env.bank.balance_of("bob", "lp:usdc-weth") == 1_000
    assert env.bank.balance_of("alice", "VELO") == 0

    env.clock.now = T0 + WEEK
    assert env.engine.earned("alice") == WEEK
    env.engine.claim("alice", "alice")
    assert env.bank.balance_of("alice", "VELO") == WEEK


def test_empty_caller_is_invalid_argument() -> None:
    env = _env()
    with pytest.raises(InvalidArgument):
        env.engine.deposit("", 5)
    assert env.engine.state == initial_state()


def test_event_log_is_bounded_and_drainable() -> None:
    env = _env(PLAIN_GAUGE, max_events=3)
    for _ in range(5):
        env.engine.deposit("alice", 1)
    assert len(env.engine.events) == 3

    drained = env.engine.drain_events()
    assert [e.event for e in drained] == [Event.DEPOSIT] * 3
    assert list(env.engine.events) == []

    env.engine.withdraw("alice", 2)
    assert [e.event for e in env.engine.drain_events()] == [Event.WITHDRAW]
