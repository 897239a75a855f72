"""
Per-signer sequence numbers for relayed gauge calls.

A relayed deposit, withdraw, claim or notify names the signer's next
sequence number, and the relay accepts it only when it is exactly one past
the last accepted value. A captured envelope therefore works once. The
engine advances a copy of the table and keeps it only if the call commits.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from .canonical import normalize_hex

PUBKEY_NBYTES = 48  # BLS12-381 G1 compressed
NONCE_MAX = 0xFFFFFFFF


def _signer_key(pubkey: str) -> str:
    return normalize_hex(pubkey, nbytes=PUBKEY_NBYTES, name="signer_pubkey")


class NonceTable:
    """Last accepted nonce per signer; a signer never seen is at 0."""

    def __init__(self, last: Optional[Mapping[str, int]] = None):
        self._last: Dict[str, int] = {_signer_key(pk): n for pk, n in (last or {}).items()}

    def get_last(self, pubkey: str) -> int:
        return self._last.get(_signer_key(pubkey), 0)

    def expected(self, pubkey: str) -> int:
        """The only nonce the next relayed call from `pubkey` may carry."""
        return self.get_last(pubkey) + 1

    def advance(self, pubkey: str, nonce: int) -> None:
        """Record `nonce` as consumed. It must be `expected(pubkey)`."""
        if isinstance(nonce, bool) or not isinstance(nonce, int):
            raise TypeError(f"nonce must be an int, got {type(nonce).__name__}")
        if nonce > NONCE_MAX:
            raise ValueError(f"nonce {nonce} exceeds u32")
        want = self.expected(pubkey)
        if nonce != want:
            raise ValueError(f"nonce {nonce} out of sequence (expected {want})")
        self._last[_signer_key(pubkey)] = nonce

    def get_all(self) -> Mapping[str, int]:
        return dict(self._last)

    def copy(self) -> NonceTable:
        return NonceTable(self._last)
