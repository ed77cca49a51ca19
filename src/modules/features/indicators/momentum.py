"""Momentum indicators: RSI, Volume Oscillator.

Pure functions on plain sequences. No state or side effects.
RSI loops over `rsi_step` instead of pandas `ewm`/`rolling` so that one
recurrence serves both the batch and the incremental path.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from src.modules.features.indicators.numeric import (
    mean,
    safe_ratio,
    validate_period,
    wilder_step,
)


@dataclass(frozen=True)
class WilderAverages:
    """Running average gain and average loss of an RSI."""

    avg_gain: float
    avg_loss: float


def rsi_step(state: WilderAverages, change: float, period: int) -> WilderAverages:
    """Fold one close-to-close change into the Wilder averages."""
    gain = change if change > 0 else 0.0
    loss = -change if change < 0 else 0.0
    return WilderAverages(
        avg_gain=wilder_step(state.avg_gain, gain, period),
        avg_loss=wilder_step(state.avg_loss, loss, period),
    )


def rsi_value(state: WilderAverages) -> float:
    """RSI from the averages. 100 when there are no losses."""
    if state.avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + state.avg_gain / state.avg_loss)


def rsi(closes: Sequence[float], period: int = 14) -> list[Optional[float]]:
    """Calculate Relative Strength Index (Wilder's smoothing).

    Exact only when fed the whole history from the series start: a
    truncated input reseeds the averages and the error decays
    geometrically with the number of bars processed after the seed.

    Args:
        closes: Closing prices, time-ascending.
        period: Lookback period (default 14).

    Returns:
        RSI values between 0 and 100. First `period` values are None.

    Raises:
        ValueError: If period < 1.
    """
    validate_period(period)
    n = len(closes)
    result: list[Optional[float]] = [None] * n
    if n <= period:
        return result

    changes = [closes[i] - closes[i - 1] for i in range(1, period + 1)]
    state = WilderAverages(
        avg_gain=mean([c if c > 0 else 0.0 for c in changes]),
        avg_loss=mean([-c if c < 0 else 0.0 for c in changes]),
    )
    result[period] = rsi_value(state)

    for i in range(period + 1, n):
        state = rsi_step(state, closes[i] - closes[i - 1], period)
        result[i] = rsi_value(state)

    return result


def volume_oscillator_point(
    volumes: Sequence[float],
    short: int = 1,
    long: int = 14,
) -> Optional[float]:
    """Volume oscillator for the last element of `volumes`.

    Formula: (SMA_short - SMA_long) / SMA_long * 100 over the trailing
    volumes.

    Args:
        volumes: Trailing volumes ending at the target bar.
        short: Short SMA period.
        long: Long SMA period.

    Returns:
        Oscillator value, 0 when the long average is zero, None with
        fewer than `long` volumes.
    """
    if len(volumes) < long:
        return None
    long_sma = mean(volumes[len(volumes) - long:])
    short_sma = mean(volumes[len(volumes) - short:])
    return safe_ratio(short_sma - long_sma, long_sma, 0.0) * 100.0


def volume_oscillator(
    volumes: Sequence[float],
    short: int = 1,
    long: int = 14,
) -> list[Optional[float]]:
    """Calculate the Volume Oscillator over a whole series.

    Args:
        volumes: Volume series.
        short: Short SMA period (default 1, i.e. the bar's own volume).
        long: Long SMA period (default 14).

    Returns:
        Oscillator values; None for indices < long - 1.

    Raises:
        ValueError: If a period < 1 or short > long.
    """
    validate_period(short)
    validate_period(long)
    if short > long:
        raise ValueError(f"Short period must be <= long period, got short={short}, long={long}")

    return [
        volume_oscillator_point(volumes[max(0, i - long + 1): i + 1], short, long)
        for i in range(len(volumes))
    ]
