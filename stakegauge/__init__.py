"""
stakegauge: per-pool staking and epoch-funded reward distribution
"""

__version__ = "0.1.0"
