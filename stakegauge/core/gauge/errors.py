"""Exception types for the gauge staking kernel.

Raised by ``step_or_raise()`` in ``engine.py`` and by the
``GaugeEngine`` shell. Every error aborts the whole operation.
"""

from __future__ import annotations


class GaugeError(Exception):
    """Base class for all gauge rejections."""


class Unauthorized(GaugeError):
    """Raised when the resolved caller may not perform the operation."""


class ZeroAmount(GaugeError):
    """Raised when a zero-value deposit or funding is submitted."""


class PoolNotAuthorized(GaugeError):
    """Raised on deposit when the emission oracle has deauthorized the gauge."""


class InsufficientBalance(GaugeError):
    """Raised when a withdrawal exceeds the caller's stake."""


class DegenerateRewardRate(GaugeError):
    """Raised when a funding would produce a zero reward rate."""


class RewardRateOverflowRisk(GaugeError):
    """Raised when the new rate exceeds the gauge's reward balance per remaining second."""


class GaugeOverflowError(GaugeError):
    """Raised when a parameter exceeds the 256-bit amount domain."""


class GaugeInvariantError(GaugeError):
    """Raised when a post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


class ReentrancyError(GaugeError):
    """Raised when a mutating entry point is entered while another is in progress."""


class RelayError(Unauthorized):
    """Raised when a relayed call envelope fails verification."""


class StaleTimestamp(GaugeError):
    """Raised when a call's time is earlier than the last accrual checkpoint."""


class InvalidArgument(GaugeError):
    """Raised when a required identity (caller, claim account) is empty."""
