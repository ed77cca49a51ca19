"""Synthetic bar feed for replays and demos.

Random walk with short trend regimes, the same shape of 5-minute data the
live feed produces. Pass a seed (or a numpy Generator) for reproducible
output.
"""

from datetime import datetime, timezone

import numpy as np

from src.modules.features.types import Bar

FIVE_MINUTES_MS = 5 * 60 * 1000
DEFAULT_START_PRICE = 65_000.0

# Per-bar volatility as a fraction of price
VOLATILITY = 0.002


def generate_bars(
    count: int = 1000,
    seed: int | None = None,
    start_price: float = DEFAULT_START_PRICE,
    start_time_ms: int | None = None,
    interval_ms: int = FIVE_MINUTES_MS,
) -> list[Bar]:
    """Generate a random-walk bar history.

    Trends flip direction every 10-29 bars; each bar moves by noise plus a
    small drift in the trend direction.

    Args:
        count: Number of bars.
        seed: RNG seed for reproducible output.
        start_price: Open of the first bar.
        start_time_ms: Timestamp of the first bar. Defaults to `count`
            intervals before now.
        interval_ms: Spacing between bars.

    Returns:
        Time-ascending bars.

    Raises:
        ValueError: If count is negative or interval_ms < 1.
    """
    if count < 0:
        raise ValueError(f"Count must be >= 0, got {count}")
    if interval_ms < 1:
        raise ValueError(f"Interval must be >= 1 ms, got {interval_ms}")

    rng = np.random.default_rng(seed)
    if start_time_ms is None:
        now_ms = int(datetime.now(timezone.utc).timestamp() * 1000)
        start_time_ms = now_ms - count * interval_ms

    price = start_price
    time_ms = start_time_ms
    trend = 1
    trend_remaining = 0
    bars: list[Bar] = []

    for _ in range(count):
        if trend_remaining <= 0:
            trend = 1 if rng.random() > 0.5 else -1
            trend_remaining = int(rng.integers(10, 30))
        trend_remaining -= 1

        volatility = price * VOLATILITY
        change = (rng.random() - 0.5 + trend * 0.01) * volatility
        open_ = price
        close = price + change
        high = max(open_, close) + rng.random() * volatility * 0.5
        low = min(open_, close) - rng.random() * volatility * 0.5

        bars.append(
            Bar(
                timestamp=time_ms,
                open=float(open_),
                high=float(high),
                low=float(low),
                close=float(close),
                volume=float(rng.random() * 100 + 50),
            )
        )
        price = close
        time_ms += interval_ms

    return bars


def generate_next_bar(
    prev: Bar,
    rng: np.random.Generator,
    interval_ms: int = FIVE_MINUTES_MS,
) -> Bar:
    """Generate the bar after `prev`.

    Opens at the previous close and carries 10% of the previous bar's body
    as momentum.
    """
    volatility = prev.close * VOLATILITY
    momentum = (prev.close - prev.open) * 0.1

    change = (rng.random() - 0.5) * volatility + momentum
    open_ = prev.close
    close = prev.close + change
    high = max(open_, close) + rng.random() * volatility * 0.4
    low = min(open_, close) - rng.random() * volatility * 0.4

    return Bar(
        timestamp=prev.timestamp + interval_ms,
        open=float(open_),
        high=float(high),
        low=float(low),
        close=float(close),
        volume=float(rng.random() * 150 + 20),
    )
