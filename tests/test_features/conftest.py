"""Shared fixtures for indicator engine tests.

All data is static and deterministic. No network calls, no randomness.
"""

import math

import pytest

from src.modules.features.types import Bar
from src.shared.config import IndicatorConfig

START_MS = 1_704_067_200_000  # 2024-01-01 00:00 UTC
STEP_MS = 5 * 60 * 1000


def make_bars(closes: list[float], spread: float = 0.5) -> list[Bar]:
    """Bars around the given closes with a fixed high/low spread."""
    bars = []
    for i, close in enumerate(closes):
        open_ = closes[i - 1] if i > 0 else close
        bars.append(
            Bar(
                timestamp=START_MS + i * STEP_MS,
                open=open_,
                high=max(open_, close) + spread,
                low=min(open_, close) - spread,
                close=close,
                volume=1_000.0 + (i % 7) * 150.0,
            )
        )
    return bars


@pytest.fixture
def engine_config() -> IndicatorConfig:
    """Small periods so every indicator warms up inside the fixtures."""
    return IndicatorConfig(
        ema_periods=(5, 12, 50),
        rsi_period=14,
        atr_period=14,
        adx_period=14,
        kernel_bandwidth=8.0,
        kernel_multiplier=3.0,
        kernel_window=60,
        history_cap=300,
        volume_osc_short=1,
        volume_osc_long=14,
    )


@pytest.fixture
def sample_bars() -> list[Bar]:
    """60 bars of a gradual uptrend with a repeating noise pattern."""
    closes = [100.0]
    move = [0.5, 0.8, -0.3, 1.0, 0.0, 0.6, -0.7, 0.4, 1.2, -0.5]
    for i in range(1, 60):
        closes.append(closes[-1] + move[i % len(move)])
    return make_bars(closes)


@pytest.fixture
def long_bars() -> list[Bar]:
    """420 bars of cycling prices: a slow wave plus a repeating noise pattern.

    Long enough for the incremental path to run past the 300-bar history cap.
    """
    closes = []
    drift = 0.0
    move = [0.9, -1.3, 0.4, 1.1, -0.8, 0.2, -0.6, 1.5, -1.0, 0.3, -0.4]
    for i in range(420):
        drift += move[i % len(move)]
        closes.append(200.0 + 15.0 * math.sin(i / 23.0) + drift * 0.5)
    bars = make_bars(closes)
    # Vary the bar ranges so TR and DM are not constant
    return [
        Bar(
            timestamp=b.timestamp,
            open=b.open,
            high=b.high + 0.3 * (i % 3),
            low=b.low - 0.2 * (i % 4),
            close=b.close,
            volume=b.volume,
        )
        for i, b in enumerate(bars)
    ]


@pytest.fixture
def rising_bars() -> list[Bar]:
    """20 bars with closes 100, 101, ..., 119 (every change a gain)."""
    return make_bars([100.0 + i for i in range(20)])


@pytest.fixture
def falling_bars() -> list[Bar]:
    """20 bars with closes 120, 119, ..., 101 (every change a loss)."""
    return make_bars([120.0 - i for i in range(20)])


@pytest.fixture
def flat_bars() -> list[Bar]:
    """40 identical bars where open == high == low == close."""
    return [
        Bar(
            timestamp=START_MS + i * STEP_MS,
            open=100.0,
            high=100.0,
            low=100.0,
            close=100.0,
            volume=500.0,
        )
        for i in range(40)
    ]


@pytest.fixture
def bar_factory():
    """Builds bars from a list of closes (see make_bars)."""
    return make_bars
