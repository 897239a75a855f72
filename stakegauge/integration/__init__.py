"""
Gauge execution layer: engine shell, collaborators, caller resolution, config
"""

from .collaborators import BankFeePool, EmissionOracle, FeePool, FeeRecipient, RecordingFeeRecipient, StaticOracle
from .config import load_gauge_config, parse_config
from .gauge_engine import GaugeEngine
from .relay import CallContext, RelayConfig, RelayedCall, resolve_caller
from .replay import ReplayReport, ScenarioError, run_scenario

__all__ = [
    "BankFeePool",
    "EmissionOracle",
    "FeePool",
    "FeeRecipient",
    "RecordingFeeRecipient",
    "StaticOracle",
    "load_gauge_config",
    "parse_config",
    "GaugeEngine",
    "CallContext",
    "RelayConfig",
    "RelayedCall",
    "resolve_caller",
    "ReplayReport",
    "ScenarioError",
    "run_scenario",
]
