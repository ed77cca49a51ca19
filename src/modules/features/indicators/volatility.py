"""Volatility indicators: True Range, ATR (Wilder).

Pure functions on bar sequences. No state or side effects.
ATR is a loop over `calc_atr`, not `Series.ewm`, because `update_one`
advances the same step and must agree with batch bit for bit.
"""

from typing import Optional, Sequence

from src.modules.features.indicators.numeric import mean, validate_period, wilder_step
from src.modules.features.types import Bar


def true_range(bar: Bar, prev_close: Optional[float]) -> float:
    """True Range of a bar.

    Args:
        bar: Current bar.
        prev_close: Previous bar's close, or None for the first bar.

    Returns:
        high - low for the first bar, otherwise
        max(high - low, |high - prev_close|, |low - prev_close|).
    """
    span = bar.high - bar.low
    if prev_close is None:
        return span
    return max(span, abs(bar.high - prev_close), abs(bar.low - prev_close))


def calc_atr(
    prev_atr: Optional[float],
    bar: Bar,
    prev_close: Optional[float],
    period: int,
) -> float:
    """Advance ATR by one bar.

    Args:
        prev_atr: ATR as of the previous bar, or None if not determinable.
        bar: The new bar.
        prev_close: Close of the previous bar.
        period: ATR period.

    Returns:
        Wilder-smoothed ATR. Falls back to the bar's own TR when
        `prev_atr` is not determinable.
    """
    tr = true_range(bar, prev_close)
    if prev_atr is None:
        return tr
    return wilder_step(prev_atr, tr, period)


def atr(bars: Sequence[Bar], period: int = 14) -> list[Optional[float]]:
    """Calculate Average True Range (Wilder smoothing).

    Seeded at index `period - 1` with the mean of the first `period`
    true ranges, then advanced with `calc_atr`.

    Args:
        bars: Time-ascending bars.
        period: ATR period (default 14).

    Returns:
        ATR values, None for indices < period - 1.

    Raises:
        ValueError: If period < 1.
    """
    validate_period(period)
    n = len(bars)
    result: list[Optional[float]] = [None] * n
    if n < period:
        return result

    seed_ranges = [
        true_range(bars[i], bars[i - 1].close if i > 0 else None)
        for i in range(period)
    ]
    result[period - 1] = mean(seed_ranges)

    for i in range(period, n):
        result[i] = calc_atr(result[i - 1], bars[i], bars[i - 1].close, period)

    return result
