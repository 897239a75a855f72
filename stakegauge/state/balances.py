"""
Multi-asset token bank with atomic transfers.

Implements TokenBank[Holder, AssetId] -> Amount. Every mutation either fully
applies or raises; `transaction()` extends that to a whole sequence of calls.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Tuple


# Type aliases
Holder = str  # account, gauge, pool or recipient identifier
AssetId = str
Amount = int  # Non-negative integer (arbitrary precision)

# Called after a credit lands: hook(asset, sender, amount)
ReceiveHook = Callable[[AssetId, Holder, Amount], None]


class InsufficientFunds(ValueError):
    """Raised when a debit would drive a balance negative."""


class TokenBank:
    """
    Balance table mapping (holder, asset) -> amount, with transfer semantics.

    Transfers are all-or-nothing and fail loudly. Holders may register a
    receive hook that runs after a credit, which is how tests model tokens
    that hand control to untrusted code mid-call.

    Note: do not rely on dict iteration order; sort keys at serialization
    boundaries.
    """

    def __init__(self):
        """Initialize empty bank."""
        self._balances: Dict[Tuple[Holder, AssetId], Amount] = {}
        self._hooks: Dict[Holder, ReceiveHook] = {}

    def balance_of(self, holder: Holder, asset: AssetId) -> Amount:
        """Get balance for (holder, asset). Returns 0 if not found."""
        return self._balances.get((holder, asset), 0)

    def _set(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise InsufficientFunds(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = amount

    def mint(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        """
        Credit new units to a holder (test fixtures, pool fee accrual).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Mint amount must be non-negative: {amount}")
        self._set(holder, asset, self.balance_of(holder, asset) + amount)

    def transfer(self, asset: AssetId, sender: Holder, recipient: Holder, amount: Amount) -> None:
        """
        Move `amount` of `asset` from sender to recipient.

        The recipient's receive hook, if any, runs after both balances are
        updated.

        Args:
            asset: Asset identifier
            sender: Debited holder
            recipient: Credited holder
            amount: Non-negative amount

        Raises:
            ValueError: If amount is negative
            InsufficientFunds: If sender's balance is below amount
        """
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative: {amount}")
        current = self.balance_of(sender, asset)
        if current < amount:
            raise InsufficientFunds(
                f"Insufficient {asset} balance for {sender}: {current} < {amount}"
            )
        self._set(sender, asset, current - amount)
        self._set(recipient, asset, self.balance_of(recipient, asset) + amount)

        hook = self._hooks.get(recipient)
        if hook is not None:
            hook(asset, sender, amount)

    def set_receive_hook(self, holder: Holder, hook: ReceiveHook | None) -> None:
        if hook is None:
            self._hooks.pop(holder, None)
        else:
            self._hooks[holder] = hook

    @contextmanager
    def transaction(self) -> Iterator["TokenBank"]:
        """
        Run a block atomically: on any exception every balance is restored.

        Nested transactions restore to their own entry snapshot.
        """
        snapshot = dict(self._balances)
        try:
            yield self
        except BaseException:
            self._balances = snapshot
            raise

    def get_all_balances(self) -> Dict[Tuple[Holder, AssetId], Amount]:
        """
        Get all balances as a dictionary.

        Returns:
            Dictionary mapping (holder, asset) -> amount
        """
        return dict(self._balances)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Holder, Amount]:
        """
        Get all balances for a specific asset.

        Args:
            asset: Asset identifier

        Returns:
            Dictionary mapping holder -> amount
        """
        result = {}
        for (holder, a), amount in self._balances.items():
            if a == asset:
                result[holder] = amount
        return result

    def total_supply(self, asset: AssetId) -> Amount:
        return sum(self.get_balances_for_asset(asset).values())

    def __repr__(self) -> str:
        return f"TokenBank({len(self._balances)} entries)"
