"""
Gauge deployment configuration loaded from YAML.

Example::

    gauge:
      gauge_id: gauge:usdc-weth
      staking_asset: lp:usdc-weth
      reward_asset: VELO
      authority: voter
      oracle: voter
      is_pool: true
      fee_recipient: fees-voting-reward
      fee_asset0: USDC
      fee_asset1: WETH
    relay:
      trusted_forwarder: forwarder
      chain_id: stakegauge-local
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml

from ..core.gauge.math import WEEK
from ..core.gauge.types import GaugeConfig
from .relay import RelayConfig

_GAUGE_KEYS = frozenset(GaugeConfig.__dataclass_fields__)
_RELAY_KEYS = frozenset(RelayConfig.__dataclass_fields__)


def gauge_config_from_mapping(obj: Mapping[str, Any]) -> GaugeConfig:
    extra = set(obj) - _GAUGE_KEYS
    if extra:
        raise ValueError(f"unknown gauge config keys: {sorted(extra)}")
    kwargs = dict(obj)
    kwargs.setdefault("fee_threshold", WEEK)
    return GaugeConfig(**kwargs)


def relay_config_from_mapping(obj: Mapping[str, Any]) -> RelayConfig:
    extra = set(obj) - _RELAY_KEYS
    if extra:
        raise ValueError(f"unknown relay config keys: {sorted(extra)}")
    return RelayConfig(**dict(obj))


def parse_config(obj: Any) -> Tuple[GaugeConfig, Optional[RelayConfig]]:
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    gauge = obj.get("gauge")
    if not isinstance(gauge, Mapping):
        raise TypeError("config must contain a `gauge` mapping")
    relay = obj.get("relay")
    if relay is not None and not isinstance(relay, Mapping):
        raise TypeError("`relay` must be a mapping")
    return (
        gauge_config_from_mapping(gauge),
        relay_config_from_mapping(relay) if relay is not None else None,
    )


def load_gauge_config(path: Path) -> Tuple[GaugeConfig, Optional[RelayConfig]]:
    """Read and validate a gauge deployment config file."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    return parse_config(obj)
