"""Shared numeric helpers for the indicator recurrences.

Pure functions on plain floats. Both the batch and the incremental path
go through these, so each formula exists exactly once.
"""

import math
from typing import Sequence, TypeVar

from src.modules.features.types import Bar

T = TypeVar("T")

# Substituted for non-finite OHLCV values at ingestion. Lossy.
SANITIZE_FALLBACK = 0.0


def validate_period(period: int) -> None:
    """Raise ValueError for a period below 1."""
    if period < 1:
        raise ValueError(f"Period must be >= 1, got {period}")


def finite_or(value: float, fallback: float = SANITIZE_FALLBACK) -> float:
    """Return `value` if it is a finite number, else `fallback`."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def is_finite_bar(bar: Bar) -> bool:
    """True when every OHLCV field of the bar is finite."""
    return all(
        isinstance(v, (int, float)) and math.isfinite(v)
        for v in (bar.open, bar.high, bar.low, bar.close, bar.volume)
    )


def sanitize_bar(bar: Bar) -> Bar:
    """Replace non-finite OHLCV values with SANITIZE_FALLBACK.

    Returns the same object when nothing needs replacing.
    """
    if is_finite_bar(bar):
        return bar
    return Bar(
        timestamp=bar.timestamp,
        open=finite_or(bar.open),
        high=finite_or(bar.high),
        low=finite_or(bar.low),
        close=finite_or(bar.close),
        volume=finite_or(bar.volume),
    )


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean of a non-empty sequence."""
    return sum(values) / len(values)


def wilder_step(prev: float, value: float, period: int) -> float:
    """One step of Wilder smoothing: (prev * (period - 1) + value) / period."""
    return (prev * (period - 1) + value) / period


def safe_ratio(numerator: float, denominator: float, default: float) -> float:
    """numerator / denominator, or `default` when the denominator is zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def trailing(items: Sequence[T], size: int) -> list[T]:
    """Last `size` items (fewer if the sequence is shorter)."""
    if size <= 0:
        return []
    return list(items[-size:])
