"""
Gauge execution shell: one stateful, serialized wrapper around the pure kernel.

Each mutating entry point runs as a single atomic call:

1. Enter the non-reentrant guard (same-thread re-entry fails, other threads wait).
2. Resolve the caller once (direct sender, or verified relayed signer).
3. Inside a bank transaction: query collaborators (oracle, pool fee claim),
   run the kernel step, commit the new state, then execute transfers.
4. On any error the bank, the kernel state and the nonce table are restored,
   so the call has no effect at all.

Read-only queries take no lock and never persist state.
"""

from __future__ import annotations

from collections import deque
from contextlib import contextmanager
import logging
import threading
import time
from typing import Callable, Deque, Dict, Iterator, List, Optional, Union

from ..core.gauge import accrual
from ..core.gauge.engine import step_or_raise
from ..core.gauge.errors import GaugeError, ReentrancyError
from ..core.gauge.math import epoch_start, last_time_reward_applicable, leftover
from ..core.gauge.state import initial_state, state_to_dict
from ..core.gauge.types import Action, ActionParams, Effect, GaugeConfig, GaugeState, StepResult, Transfer
from ..state.balances import TokenBank
from ..state.nonces import NonceTable
from .collaborators import EmissionOracle, FeePool, FeeRecipient
from .relay import CallContext, RelayConfig, resolve_caller

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
Sender = Union[str, CallContext]

# Default bound on the retained notification log.
DEFAULT_MAX_EVENTS = 10_000


def _system_clock() -> int:
    return int(time.time())


class GaugeEngine:
    """Owns one gauge's kernel state and executes its entry points."""

    def __init__(
        self,
        config: GaugeConfig,
        *,
        bank: TokenBank,
        oracle: EmissionOracle,
        fee_pool: Optional[FeePool] = None,
        fee_recipient: Optional[FeeRecipient] = None,
        relay: Optional[RelayConfig] = None,
        clock: Optional[Clock] = None,
        state: Optional[GaugeState] = None,
        max_events: Optional[int] = DEFAULT_MAX_EVENTS,
    ):
        if config.is_pool:
            if fee_pool is None or fee_recipient is None:
                raise ValueError("a pool gauge needs both fee_pool and fee_recipient")
            if tuple(fee_pool.tokens()) != (config.fee_asset0, config.fee_asset1):
                raise ValueError("fee_pool tokens do not match fee_asset0/fee_asset1")
        self.config = config
        self._bank = bank
        self._oracle = oracle
        self._fee_pool = fee_pool
        self._fee_recipient = fee_recipient
        self._relay = relay or RelayConfig()
        self._clock: Clock = clock or _system_clock
        self._state = state if state is not None else initial_state()
        self._nonces = NonceTable()
        self._mutex = threading.RLock()
        self._entered = False
        # Oldest notifications are dropped once `max_events` is reached (None: unbounded).
        self.events: Deque[Effect] = deque(maxlen=max_events)

    # -- Guard ----------------------------------------------------------------

    @contextmanager
    def _non_reentrant(self) -> Iterator[None]:
        with self._mutex:
            if self._entered:
                raise ReentrancyError("reentrant call into gauge")
            self._entered = True
            try:
                yield
            finally:
                self._entered = False

    # -- Mutating entry points -----------------------------------------------

    def deposit(self, sender: Sender, amount: int, recipient: Optional[str] = None) -> StepResult:
        """Stake `amount` for `recipient` (default: the caller)."""
        return self._execute(
            sender, Action.DEPOSIT, amount=amount, account=recipient,
            args={"amount": amount, "recipient": recipient},
        )

    def withdraw(self, sender: Sender, amount: int) -> StepResult:
        return self._execute(sender, Action.WITHDRAW, amount=amount, args={"amount": amount})

    def claim(self, sender: Sender, account: str) -> StepResult:
        """Pay out `account`'s accrued reward. Caller: the account or the authority."""
        return self._execute(sender, Action.CLAIM, account=account, args={"account": account})

    def notify_reward_amount(self, sender: Sender, amount: int) -> StepResult:
        """Fund the stream until the next epoch boundary; claims and forwards pool fees first."""
        return self._execute(sender, Action.NOTIFY_REWARD, amount=amount, args={"amount": amount})

    def notify_reward_without_claim(self, sender: Sender, amount: int) -> StepResult:
        return self._execute(
            sender, Action.NOTIFY_REWARD_WITHOUT_CLAIM, amount=amount, args={"amount": amount},
        )

    def _execute(
        self,
        sender: Sender,
        action: Action,
        *,
        amount: int = 0,
        account: Optional[str] = None,
        args: Dict[str, object],
    ) -> StepResult:
        ctx = sender if isinstance(sender, CallContext) else CallContext(sender=sender)
        with self._non_reentrant():
            now = int(self._clock())
            # Work on copies; only commit if everything succeeds.
            nonces = self._nonces.copy()
            prev_state = self._state
            try:
                caller = resolve_caller(
                    ctx,
                    config=self._relay,
                    gauge_id=self.config.gauge_id,
                    action=action.value,
                    args=args,
                    nonces=nonces,
                    now=now,
                )
                logger.debug("gauge %s: %s by %s at %d", self.config.gauge_id, action.value, caller, now)
                with self._bank.transaction():
                    params = self._build_params(action, caller, now, amount, account or "")
                    result = step_or_raise(self.config, prev_state, params)
                    assert result.state is not None
                    self._state = result.state
                    self._execute_transfers(result.transfers)
            except GaugeError as exc:
                self._state = prev_state
                logger.warning("gauge %s: %s rejected (%s): %s", self.config.gauge_id, action.value,
                               type(exc).__name__, exc)
                raise
            except BaseException:
                self._state = prev_state
                raise

            self._nonces = nonces
            self.events.extend(result.effects)
            for effect in result.effects:
                logger.info("gauge %s: %s %s", self.config.gauge_id, effect.event.value, dict(effect.fields))
            return result

    def _build_params(
        self, action: Action, caller: str, now: int, amount: int, account: str,
    ) -> ActionParams:
        if action == Action.DEPOSIT:
            return ActionParams(
                action=action, now=now, caller=caller, account=account, amount=amount,
                gauge_alive=bool(self._oracle.is_alive(self.config.gauge_id)),
            )
        if action in (Action.NOTIFY_REWARD, Action.NOTIFY_REWARD_WITHOUT_CLAIM):
            fees0, fees1 = 0, 0
            # Only the authority may trigger the external fee claim.
            if action == Action.NOTIFY_REWARD and self.config.is_pool and caller == self.config.authority:
                assert self._fee_pool is not None
                fees0, fees1 = self._fee_pool.claim_fees(self.config.gauge_id)
            return ActionParams(
                action=action, now=now, caller=caller, amount=amount,
                fees_claimed0=fees0, fees_claimed1=fees1,
                reward_balance=self._bank.balance_of(self.config.gauge_id, self.config.reward_asset),
            )
        return ActionParams(action=action, now=now, caller=caller, account=account, amount=amount)

    def _execute_transfers(self, transfers: tuple[Transfer, ...]) -> None:
        notifications: List[Transfer] = []
        for t in transfers:
            self._bank.transfer(t.asset, t.sender, t.recipient, t.amount)
            if t.notify_recipient:
                notifications.append(t)
        for t in notifications:
            assert self._fee_recipient is not None
            logger.info("gauge %s: forwarded %d %s to %s", self.config.gauge_id, t.amount, t.asset, t.recipient)
            self._fee_recipient.notify_reward_amount(t.asset, t.amount)

    def drain_events(self) -> List[Effect]:
        """Return the retained notifications in order and clear the log."""
        with self._mutex:
            out = list(self.events)
            self.events.clear()
            return out

    # -- Read-only queries ----------------------------------------------------

    @property
    def state(self) -> GaugeState:
        return self._state

    @property
    def total_staked(self) -> int:
        return self._state.total_staked

    def balance_of(self, account: str) -> int:
        return self._state.position(account).balance

    def last_time_reward_applicable(self) -> int:
        return last_time_reward_applicable(int(self._clock()), self._state.period_end)

    def reward_per_unit(self) -> int:
        return accrual.current_index(self._state, int(self._clock()))

    def earned(self, account: str) -> int:
        return accrual.earned_by(self._state, account, int(self._clock()))

    def left(self) -> int:
        """Reward still to be distributed by the active stream."""
        return leftover(int(self._clock()), self._state.period_end, self._state.reward_rate)

    def reward_rate_by_epoch(self, timestamp: int) -> int:
        return self._state.rate_by_epoch.get(epoch_start(timestamp), 0)

    def last_nonce(self, signer_pubkey: str) -> int:
        return self._nonces.get_last(signer_pubkey)

    def snapshot(self) -> Dict[str, object]:
        return state_to_dict(self._state)
