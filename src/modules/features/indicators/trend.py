"""Trend indicators: EMA, ADX.

Pure functions on plain sequences. No state survives a call; the
recurrence state is whatever the caller threads from one call to the next.
Loops over `ema_step`/`directional_step` rather than `Series.ewm`, so the
incremental path runs the same float operations and matches batch exactly.
"""

from dataclasses import dataclass, replace
from typing import Optional, Sequence

from src.modules.features.indicators.numeric import (
    mean,
    safe_ratio,
    validate_period,
    wilder_step,
)
from src.modules.features.indicators.volatility import true_range
from src.modules.features.types import Bar


def ema_step(prev: Optional[float], close: float, period: int) -> float:
    """Advance an EMA by one close.

    Args:
        prev: EMA as of the previous bar, or None if not determinable.
        close: New close.
        period: EMA period.

    Returns:
        close * k + prev * (1 - k) with k = 2 / (period + 1). Falls back
        to `close` when `prev` is None (cold-start recovery).
    """
    if prev is None:
        return close
    k = 2.0 / (period + 1)
    return close * k + prev * (1 - k)


def ema(closes: Sequence[float], period: int) -> list[Optional[float]]:
    """Calculate Exponential Moving Average.

    Args:
        closes: Close prices, time-ascending.
        period: EMA period.

    Returns:
        EMA series of the same length. Indices < period - 1 are None;
        index period - 1 is the SMA of the first `period` closes.

    Raises:
        ValueError: If period < 1.
    """
    validate_period(period)
    n = len(closes)
    result: list[Optional[float]] = [None] * n
    if n < period:
        return result

    result[period - 1] = mean(closes[:period])
    for i in range(period, n):
        result[i] = ema_step(result[i - 1], closes[i], period)

    return result


@dataclass(frozen=True)
class DirectionalState:
    """Wilder-smoothed TR, +DM, -DM and the running ADX (None until seeded)."""

    tr: float
    plus_dm: float
    minus_dm: float
    adx: Optional[float] = None


def directional_movement(bar: Bar, prev: Bar) -> tuple[float, float, float]:
    """True range, +DM and -DM of `bar` relative to `prev`.

    Only the larger, positive move counts; the other side is zero.
    """
    up = bar.high - prev.high
    down = prev.low - bar.low
    plus_dm = up if up > down and up > 0 else 0.0
    minus_dm = down if down > up and down > 0 else 0.0
    return true_range(bar, prev.close), plus_dm, minus_dm


def directional_step(
    state: DirectionalState,
    move: tuple[float, float, float],
    period: int,
) -> DirectionalState:
    """Fold one (TR, +DM, -DM) triple into the smoothed sums. ADX is carried."""
    tr, plus_dm, minus_dm = move
    return DirectionalState(
        tr=wilder_step(state.tr, tr, period),
        plus_dm=wilder_step(state.plus_dm, plus_dm, period),
        minus_dm=wilder_step(state.minus_dm, minus_dm, period),
        adx=state.adx,
    )


def dx_value(state: DirectionalState) -> float:
    """Directional index from smoothed sums; 0 when undefined."""
    plus_di = 100.0 * safe_ratio(state.plus_dm, state.tr, 0.0)
    minus_di = 100.0 * safe_ratio(state.minus_dm, state.tr, 0.0)
    return 100.0 * safe_ratio(abs(plus_di - minus_di), plus_di + minus_di, 0.0)


def adx(bars: Sequence[Bar], period: int = 14) -> list[Optional[float]]:
    """Calculate Average Directional Index (Wilder).

    Measures trend strength regardless of direction.

    TR/+DM/-DM start at index 1 and are seeded with their mean over the
    first `period` moves (smoothed value first available at index
    `period`). ADX is seeded with the mean of the first `period` DX values,
    so the first determinable index is 2 * period - 1.

    Args:
        bars: Time-ascending bars.
        period: ADX period (default 14).

    Returns:
        ADX values (0-100), None until 2 * period bars are available.

    Raises:
        ValueError: If period < 1.
    """
    validate_period(period)
    n = len(bars)
    result: list[Optional[float]] = [None] * n
    if n < 2 * period:
        return result

    moves = [directional_movement(bars[i], bars[i - 1]) for i in range(1, n)]
    seed = moves[:period]
    state = DirectionalState(
        tr=mean([m[0] for m in seed]),
        plus_dm=mean([m[1] for m in seed]),
        minus_dm=mean([m[2] for m in seed]),
    )
    dx_seed: list[float] = []

    for i in range(period, n):
        if i > period:
            state = directional_step(state, moves[i - 1], period)
        dx = dx_value(state)
        if state.adx is None:
            dx_seed.append(dx)
            if len(dx_seed) == period:
                state = replace(state, adx=mean(dx_seed))
        else:
            state = replace(state, adx=wilder_step(state.adx, dx, period))
        result[i] = state.adx

    return result
