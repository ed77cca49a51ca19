"""Nadaraya-Watson kernel envelope (Gaussian kernel).

For a target bar the estimator weights every close in a trailing window by
exp(-d^2 / (2 * bandwidth^2)), where d is the distance in bars from the
target. The midline is the weighted mean; the band half-width is the
weighted mean absolute deviation around it, scaled by a multiplier.

`envelope_point` is the one place the sums are formed. It always treats
the target as a sample at distance 0 (weight 1) added to the weighted sums
of the bars before it, so the batch series and a single incremental point
over the same window produce bit-identical values.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from src.modules.features.indicators.numeric import validate_period

# Indices below this short-circuit to close +/- WARMUP_BAND
KERNEL_WARMUP_BARS = 10
WARMUP_BAND = 0.01


@dataclass(frozen=True)
class KernelEnvelope:
    """Midline and bands of the kernel envelope at one bar."""

    mid: float
    upper: float
    lower: float


def gaussian_weights(count: int, bandwidth: float) -> np.ndarray:
    """Weights for `count` samples at distances count, count-1, ..., 1.

    Ordered oldest first, to line up with a time-ascending close window
    that excludes the target itself.
    """
    distances = np.arange(count, 0, -1, dtype=float)
    return np.exp(-(distances**2) / (2.0 * bandwidth**2))


def warmup_envelope(close: float) -> KernelEnvelope:
    """Fixed +/-1% band used before enough context exists."""
    half_width = abs(close) * WARMUP_BAND
    return KernelEnvelope(mid=close, upper=close + half_width, lower=close - half_width)


def envelope_point(
    window: Sequence[float],
    bandwidth: float,
    multiplier: float,
) -> KernelEnvelope:
    """Kernel envelope at the last close of `window`.

    Sums are accumulated as offsets from the target close, so a flat window
    yields mid == close and a zero-width band exactly.

    Args:
        window: Trailing closes ending at the target bar (time-ascending).
        bandwidth: Gaussian bandwidth in bars.
        multiplier: Band half-width in units of weighted MAE.

    Returns:
        KernelEnvelope for the target bar.
    """
    closes = np.asarray(window, dtype=float)
    target = float(closes[-1])
    history = closes[:-1]
    weights = gaussian_weights(len(history), bandwidth)

    total = float(weights.sum()) + 1.0
    if total <= 0.0:
        return KernelEnvelope(mid=target, upper=target, lower=target)

    mid = target + float(np.dot(weights, history - target)) / total
    mae = (float(np.dot(weights, np.abs(history - mid))) + abs(target - mid)) / total

    return KernelEnvelope(
        mid=mid,
        upper=mid + multiplier * mae,
        lower=mid - multiplier * mae,
    )


def envelope_at(
    index: int,
    window: Sequence[float],
    bandwidth: float,
    multiplier: float,
) -> KernelEnvelope:
    """Envelope for bar `index` given its trailing close window.

    Applies the warm-up rule before running the estimator.
    """
    if index < KERNEL_WARMUP_BARS:
        return warmup_envelope(float(window[-1]))
    return envelope_point(window, bandwidth, multiplier)


def kernel_envelope(
    closes: Sequence[float],
    bandwidth: float = 8.0,
    multiplier: float = 3.0,
    window: int = 500,
) -> list[KernelEnvelope]:
    """Calculate the kernel envelope for every bar.

    O(window) work per bar. The window cap bounds cost and is part of the
    result: the incremental path must use the same cap to match.

    Args:
        closes: Closing prices, time-ascending.
        bandwidth: Gaussian bandwidth in bars (default 8).
        multiplier: Band multiplier (default 3).
        window: Max lookback including the target bar (default 500).

    Returns:
        One KernelEnvelope per close.

    Raises:
        ValueError: If window < 1 or bandwidth <= 0.
    """
    validate_period(window)
    if bandwidth <= 0:
        raise ValueError(f"Bandwidth must be > 0, got {bandwidth}")

    values = list(closes)
    return [
        envelope_at(i, values[max(0, i - window + 1): i + 1], bandwidth, multiplier)
        for i in range(len(values))
    ]
