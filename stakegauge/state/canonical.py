"""
Byte-stable encodings shared by the gauge's two hashed payloads.

`state_digest` hashes the JSON form of a GaugeState, and a relayed call is
signed over the JSON form of its signing dict. Both must produce the same
bytes on every host, so the JSON here is sorted, compact and integer-only:
reward indices run to 10**18 scale and a float would silently round them.

Signer keys and signatures travel as hex; `normalize_hex` gives each value a
single spelling so one BLS key cannot appear under two nonce-table entries.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

_HEX_BODY = re.compile(r"[0-9a-fA-F]+")


def _check_str(s: str) -> None:
    if any(0xD800 <= ord(ch) <= 0xDFFF for ch in s):
        raise TypeError("lone surrogates cannot be encoded")


def _check_encodable(value: Any) -> None:
    """Walk a JSON-bound value; only str keys, no floats, no lone surrogates."""
    stack = [value]
    while stack:
        item = stack.pop()
        if isinstance(item, float):
            raise TypeError(f"float {item!r} in hashed payload; use integer units")
        if isinstance(item, str):
            _check_str(item)
        elif isinstance(item, dict):
            for key, sub in item.items():
                if not isinstance(key, str):
                    raise TypeError(f"payload key {key!r} is not a str")
                _check_str(key)
                stack.append(sub)
        elif isinstance(item, (list, tuple)):
            stack.extend(item)


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys and no whitespace. Rejects floats."""
    _check_encodable(value)
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False,
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """Prefix `b"stakegauge:<label>:v<version>\\x00"` for a hashed message."""
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label or not label.isascii():
        raise ValueError(f"label must be NUL-free ASCII: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return f"stakegauge:{label}:v{version}".encode("ascii") + b"\x00"


def normalize_hex(value: str, *, nbytes: int, name: str) -> str:
    """Return `value` as lowercase 0x-prefixed hex of exactly `nbytes` bytes."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str")
    body = value.strip()
    if body[:2].lower() == "0x":
        body = body[2:]
    if len(body) != 2 * nbytes:
        raise ValueError(f"{name} must be {nbytes} bytes ({2 * nbytes} hex digits)")
    if not _HEX_BODY.fullmatch(body):
        raise ValueError(f"{name} must be valid hex")
    return "0x" + body.lower()


def hex_bytes(value: str, *, nbytes: int, name: str) -> bytes:
    return bytes.fromhex(normalize_hex(value, nbytes=nbytes, name=name)[2:])
