"""
Mutable state tables used by the gauge shell
"""

from .balances import InsufficientFunds, TokenBank
from .nonces import NonceTable

__all__ = [
    "InsufficientFunds",
    "TokenBank",
    "NonceTable",
]
