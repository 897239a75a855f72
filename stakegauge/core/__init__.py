"""
Core gauge accounting
"""

from .gauge import (
    ActionParams,
    GaugeConfig,
    GaugeState,
    StepResult,
    initial_state,
    step,
    step_or_raise,
)

__all__ = [
    "ActionParams",
    "GaugeConfig",
    "GaugeState",
    "StepResult",
    "initial_state",
    "step",
    "step_or_raise",
]
