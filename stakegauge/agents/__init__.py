"""
Client-side helpers for stakers submitting through a forwarder
"""

from .call_signer import keypair_from_seed, sign_relayed_call

__all__ = [
    "keypair_from_seed",
    "sign_relayed_call",
]
