"""
Relayed-call creation and signing for stakers that submit through a forwarder.
"""

from typing import Any, Mapping, Tuple

from py_ecc.bls import G2Basic

from ..integration.relay import RelayedCall, call_message_hash, call_signing_dict


def keypair_from_seed(seed: bytes) -> Tuple[int, str]:
    """
    Derive a BLS12-381 keypair.

    Args:
        seed: At least 32 bytes of key material

    Returns:
        (secret key, 0x-prefixed 48-byte public key hex)
    """
    if len(seed) < 32:
        raise ValueError("seed must be at least 32 bytes")
    sk = G2Basic.KeyGen(seed)
    return sk, "0x" + G2Basic.SkToPk(sk).hex()


def sign_relayed_call(
    *,
    secret_key: int,
    signer_pubkey: str,
    gauge_id: str,
    action: str,
    args: Mapping[str, Any],
    nonce: int,
    deadline: int,
    chain_id: str,
) -> RelayedCall:
    """
    Sign a gauge call for submission by a trusted forwarder.

    `action` and `args` must match exactly what the forwarder will invoke:
    e.g. ``("deposit", {"amount": 100, "recipient": None})``.

    Returns:
        RelayedCall envelope
    """
    signing_dict = call_signing_dict(
        gauge_id=gauge_id,
        action=action,
        args=args,
        signer_pubkey=signer_pubkey,
        nonce=nonce,
        deadline=deadline,
    )
    sig = G2Basic.Sign(secret_key, call_message_hash(signing_dict, chain_id=chain_id))
    return RelayedCall(
        signer_pubkey=signing_dict["signer_pubkey"],
        nonce=nonce,
        deadline=deadline,
        signature="0x" + sig.hex(),
    )
