"""Indicator Engine - dual-path (batch / incremental) indicator computation.

Computes trend, momentum, volatility, volume and kernel-envelope indicators
for a bar sequence, either from scratch or one new bar at a time.
"""

from src.modules.features.engine import (
    IndicatorEngine,
    apply_tick,
    compare_paths,
    process_all,
    update_one,
)
from src.modules.features.types import Bar, IndicatorRecord

__all__ = [
    "IndicatorEngine",
    "process_all",
    "update_one",
    "apply_tick",
    "compare_paths",
    "Bar",
    "IndicatorRecord",
]
