"""Technical indicators for the indicator engine.

All indicators are pure functions: sequences in, lists out. Single-step
functions (ema_step, calc_atr, rsi_step, directional_step, envelope_point,
volume_oscillator_point) are shared by the batch and incremental paths.
"""

from src.modules.features.indicators.kernel import (
    KernelEnvelope,
    envelope_at,
    envelope_point,
    kernel_envelope,
)
from src.modules.features.indicators.momentum import (
    WilderAverages,
    rsi,
    rsi_step,
    rsi_value,
    volume_oscillator,
    volume_oscillator_point,
)
from src.modules.features.indicators.trend import (
    DirectionalState,
    adx,
    directional_movement,
    directional_step,
    dx_value,
    ema,
    ema_step,
)
from src.modules.features.indicators.volatility import atr, calc_atr, true_range

__all__ = [
    "ema",
    "ema_step",
    "adx",
    "DirectionalState",
    "directional_movement",
    "directional_step",
    "dx_value",
    "rsi",
    "rsi_step",
    "rsi_value",
    "WilderAverages",
    "volume_oscillator",
    "volume_oscillator_point",
    "atr",
    "calc_atr",
    "true_range",
    "KernelEnvelope",
    "envelope_at",
    "envelope_point",
    "kernel_envelope",
]
