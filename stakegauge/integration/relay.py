"""
Caller resolution for direct and relayed (meta-transaction) calls.

Every gauge entry point resolves its caller exactly once, through
`resolve_caller()`:

- A direct call's caller is its transport sender.
- A relayed call arrives from the configured trusted forwarder carrying a
  `RelayedCall` envelope. The caller is the envelope's signer, after BLS
  signature, deadline and nonce checks.
- Envelopes from anyone but the trusted forwarder are rejected, as are
  relayed calls when no forwarder is configured.

Signature scheme: BLS12-381 (G2Basic) over
SHA256( domain_sep(f"gauge_call_sig:{chain_id}", v1) || canonical_json_bytes(call_signing_dict) ).
"""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
from typing import Any, Dict, Mapping, Optional

from py_ecc.bls import G2Basic

from ..core.gauge.errors import RelayError
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, hex_bytes, normalize_hex
from ..state.nonces import NONCE_MAX, PUBKEY_NBYTES, NonceTable

CALL_MODULE = "StakeGauge"
CALL_VERSION = "1.0"
SIGNATURE_NBYTES = 96


@dataclass(frozen=True)
class RelayConfig:
    trusted_forwarder: Optional[str] = None
    # Signature domain separation (bind to a specific network/deployment).
    chain_id: str = "stakegauge-local"


@dataclass(frozen=True)
class RelayedCall:
    signer_pubkey: str
    nonce: int
    deadline: int
    signature: str


@dataclass(frozen=True)
class CallContext:
    """Transport-level view of a call: who delivered it, and any envelope."""

    sender: str
    relayed: Optional[RelayedCall] = None


def call_signing_dict(
    *,
    gauge_id: str,
    action: str,
    args: Mapping[str, Any],
    signer_pubkey: str,
    nonce: int,
    deadline: int,
) -> Dict[str, Any]:
    """Canonical signing dict for a relayed call (deterministic)."""
    return {
        "module": CALL_MODULE,
        "version": CALL_VERSION,
        "gauge_id": str(gauge_id),
        "action": str(action),
        "args": dict(args),
        "signer_pubkey": normalize_hex(signer_pubkey, nbytes=PUBKEY_NBYTES, name="signer_pubkey"),
        "nonce": int(nonce),
        "deadline": int(deadline),
    }


def call_message_hash(signing_dict: Mapping[str, Any], *, chain_id: str) -> bytes:
    msg = domain_sep_bytes(f"gauge_call_sig:{chain_id}", version=1) + canonical_json_bytes(dict(signing_dict))
    return hashlib.sha256(msg).digest()


def _envelope_uint(value: Any, *, name: str, max_value: Optional[int] = None) -> int:
    # bool passes isinstance(int).
    if isinstance(value, bool) or not isinstance(value, int):
        raise RelayError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or (max_value is not None and value > max_value):
        raise RelayError(f"{name} out of range: {value}")
    return value


def _verify_relayed_call(
    *,
    config: RelayConfig,
    relayed: RelayedCall,
    gauge_id: str,
    action: str,
    args: Mapping[str, Any],
    nonces: NonceTable,
    now: int,
) -> str:
    """Verify and consume a relayed call's nonce (fail-closed). Returns the signer."""
    try:
        signer = normalize_hex(relayed.signer_pubkey, nbytes=PUBKEY_NBYTES, name="signer_pubkey")
    except (TypeError, ValueError) as exc:
        raise RelayError(str(exc)) from exc

    deadline = _envelope_uint(relayed.deadline, name="deadline")
    nonce = _envelope_uint(relayed.nonce, name="nonce", max_value=NONCE_MAX)

    # Deadline check first (cheap).
    if int(now) > deadline:
        raise RelayError("relayed call expired (deadline)")

    expected = nonces.expected(signer)
    if nonce != expected:
        raise RelayError("nonce invalid")

    try:
        pubkey_bytes = hex_bytes(signer, nbytes=PUBKEY_NBYTES, name="signer_pubkey")
        sig_bytes = hex_bytes(relayed.signature, nbytes=SIGNATURE_NBYTES, name="signature")
    except (TypeError, ValueError) as exc:
        raise RelayError(str(exc)) from exc

    signing_dict = call_signing_dict(
        gauge_id=gauge_id,
        action=action,
        args=args,
        signer_pubkey=signer,
        nonce=nonce,
        deadline=deadline,
    )
    msg_hash = call_message_hash(signing_dict, chain_id=config.chain_id)
    try:
        ok = bool(G2Basic.Verify(pubkey_bytes, msg_hash, sig_bytes))
    except Exception as exc:
        raise RelayError(f"signature verification error: {exc}") from exc
    if not ok:
        raise RelayError("invalid signature")

    # Commit nonce consumption after signature verification.
    nonces.advance(signer, nonce)
    return signer


def resolve_caller(
    ctx: CallContext,
    *,
    config: RelayConfig,
    gauge_id: str,
    action: str,
    args: Mapping[str, Any],
    nonces: NonceTable,
    now: int,
) -> str:
    """Return the authenticated caller identity for one operation.

    Raises:
        RelayError: The envelope is present but not acceptable.
    """
    if ctx.relayed is None:
        return ctx.sender
    if config.trusted_forwarder is None or ctx.sender != config.trusted_forwarder:
        raise RelayError(f"untrusted forwarder: {ctx.sender}")
    return _verify_relayed_call(
        config=config,
        relayed=ctx.relayed,
        gauge_id=gauge_id,
        action=action,
        args=args,
        nonces=nonces,
        now=now,
    )
