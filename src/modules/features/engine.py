"""Indicator Engine - batch and incremental indicator computation.

Two entry points over the same recurrence functions:

- `process_all` computes every configured indicator over a whole bar
  sequence from a cold start (initialization, source changes, replays).
- `update_one` produces the record for one new bar from the records that
  precede it. EMA and ATR advance from the exact recurrence state in the
  last record. The kernel envelope and volume oscillator are recomputed
  for the single point over the same window the batch path uses. RSI and
  ADX re-run their batch recurrence over the last `history_cap` bars, so
  they match batch exactly until the history outgrows the cap and only
  approximately (geometrically decaying seed error) after that.
"""

from typing import Optional, Sequence

from src.modules.features.indicators.kernel import envelope_at, kernel_envelope
from src.modules.features.indicators.momentum import (
    rsi,
    volume_oscillator,
    volume_oscillator_point,
)
from src.modules.features.indicators.numeric import mean, sanitize_bar, trailing
from src.modules.features.indicators.trend import adx, ema, ema_step
from src.modules.features.indicators.volatility import atr, calc_atr
from src.modules.features.types import Bar, IndicatorRecord
from src.shared.config import IndicatorConfig, PreconditionError
from src.shared.logger import get_logger

logger = get_logger(__name__)


class IndicatorEngine:
    """Computes indicator records for a bar sequence, in batch or one bar at a time.

    The engine holds only its validated configuration; all recurrence
    state lives in the records the caller passes back in. Concurrent
    `update_one` calls on the same record list must be serialized by the
    caller.

    Usage:
        engine = IndicatorEngine(IndicatorConfig(ema_periods=(12, 144)))
        records = engine.process_all(bars)
        records.append(engine.update_one(records, next_bar))
    """

    def __init__(self, config: IndicatorConfig | None = None) -> None:
        """Initialize IndicatorEngine.

        Args:
            config: Indicator parameters. Defaults to IndicatorConfig().

        Raises:
            PreconditionError: If the configuration is invalid.
        """
        self._config = config or IndicatorConfig()
        self._config.validate()

    @property
    def config(self) -> IndicatorConfig:
        return self._config

    def process_all(self, bars: Sequence[Bar]) -> list[IndicatorRecord]:
        """Compute every configured indicator over the full bar sequence.

        Args:
            bars: Time-ascending bars. Non-finite OHLCV values are replaced
                with 0.0 before any computation.

        Returns:
            One IndicatorRecord per bar, in input order. Empty for empty input.

        Raises:
            PreconditionError: If timestamps decrease anywhere.
        """
        if not bars:
            return []

        _check_order(bars)
        clean = self._sanitize(bars)
        cfg = self._config

        closes = [bar.close for bar in clean]
        volumes = [bar.volume for bar in clean]

        ema_series = {period: ema(closes, period) for period in cfg.ema_periods}
        rsi_series = rsi(closes, cfg.rsi_period)
        atr_series = atr(clean, cfg.atr_period)
        adx_series = adx(clean, cfg.adx_period)
        envelopes = kernel_envelope(
            closes,
            bandwidth=cfg.kernel_bandwidth,
            multiplier=cfg.kernel_multiplier,
            window=cfg.kernel_window,
        )
        vol_osc = volume_oscillator(
            volumes, short=cfg.volume_osc_short, long=cfg.volume_osc_long
        )

        records = [
            IndicatorRecord(
                bar=bar,
                index=i,
                ema={period: ema_series[period][i] for period in cfg.ema_periods},
                rsi=rsi_series[i],
                atr=atr_series[i],
                adx=adx_series[i],
                kernel_mid=envelopes[i].mid,
                kernel_upper=envelopes[i].upper,
                kernel_lower=envelopes[i].lower,
                volume_osc=vol_osc[i],
            )
            for i, bar in enumerate(clean)
        ]

        logger.info(f"Computed indicators for {len(records)} bars")
        return records

    def update_one(
        self,
        prior_records: Sequence[IndicatorRecord],
        new_bar: Bar,
    ) -> IndicatorRecord:
        """Compute the record for one new bar.

        With no prior records this delegates to `process_all` on a single
        bar; values needing more history come back as None.

        The bar's position comes from the last record's `index`, not from
        the length of `prior_records`, so a trailing slice works. EMA and
        ATR step from the last record alone. Batch-identical RSI/ADX need
        the last `history_cap` records and the kernel needs the last
        `kernel_window - 1`.

        Args:
            prior_records: Records for every bar before `new_bar`, or a
                trailing slice of them. Not mutated.
            new_bar: The bar to append.

        Returns:
            The IndicatorRecord for `new_bar`. The caller appends it.

        Raises:
            PreconditionError: If `new_bar` is older than the last record.
        """
        bar = sanitize_bar(new_bar)
        if bar is not new_bar:
            logger.warning(f"Replaced non-finite values in bar {new_bar.timestamp}")

        if not prior_records:
            logger.debug("No prior records, computing first bar from a cold start")
            return self.process_all([bar])[0]

        last = prior_records[-1]
        if bar.timestamp < last.timestamp:
            raise PreconditionError(
                f"Bar timestamps must be non-decreasing: {bar.timestamp} "
                f"arrived after {last.timestamp}"
            )

        cfg = self._config
        index = last.index + 1

        context = [record.bar for record in trailing(prior_records, cfg.history_cap)]
        context.append(bar)

        kernel_window = [r.close for r in trailing(prior_records, cfg.kernel_window - 1)]
        kernel_window.append(bar.close)
        envelope = envelope_at(
            index, kernel_window, cfg.kernel_bandwidth, cfg.kernel_multiplier
        )

        volumes = [r.bar.volume for r in trailing(prior_records, cfg.volume_osc_long - 1)]
        volumes.append(bar.volume)

        return IndicatorRecord(
            bar=bar,
            index=index,
            ema={
                period: self._next_ema(prior_records, bar, index, period)
                for period in cfg.ema_periods
            },
            rsi=rsi([b.close for b in context], cfg.rsi_period)[-1],
            atr=self._next_atr(prior_records, bar, index),
            adx=adx(context, cfg.adx_period)[-1],
            kernel_mid=envelope.mid,
            kernel_upper=envelope.upper,
            kernel_lower=envelope.lower,
            volume_osc=volume_oscillator_point(
                volumes, cfg.volume_osc_short, cfg.volume_osc_long
            ),
        )

    def apply_tick(
        self,
        records: Sequence[IndicatorRecord],
        bar: Bar,
    ) -> list[IndicatorRecord]:
        """Apply a streamed bar that may re-deliver the still-forming last bar.

        A bar with the same timestamp as the last record replaces it;
        anything newer is appended.

        Args:
            records: Current records. Not mutated.
            bar: Streamed bar.

        Returns:
            New list of records including `bar`.
        """
        base = list(records)
        if base and bar.timestamp == base[-1].timestamp:
            logger.debug(f"Recomputing forming bar {bar.timestamp}")
            base.pop()
        base.append(self.update_one(base, bar))
        return base

    def compare_paths(self, bars: Sequence[Bar]) -> dict[str, float]:
        """Fold `bars` through both paths and report the worst divergence.

        Args:
            bars: Time-ascending bars.

        Returns:
            Max absolute batch-vs-incremental difference per indicator field,
            over bars where both paths have a value.
        """
        batch = self.process_all(bars)
        incremental: list[IndicatorRecord] = []
        for bar in bars:
            incremental.append(self.update_one(incremental, bar))

        divergence: dict[str, float] = {}
        for expected, actual in zip(batch, incremental):
            actual_values = actual.indicator_values()
            for name, value in expected.indicator_values().items():
                other = actual_values.get(name)
                worst = divergence.setdefault(name, 0.0)
                if value is None or other is None:
                    continue
                divergence[name] = max(worst, abs(value - other))

        logger.info(
            f"Compared batch and incremental paths over {len(bars)} bars",
            extra={"context": {"divergence": divergence}},
        )
        return divergence

    def _next_ema(
        self,
        prior_records: Sequence[IndicatorRecord],
        bar: Bar,
        index: int,
        period: int,
    ) -> Optional[float]:
        prev = prior_records[-1].ema.get(period)
        if prev is not None:
            return ema_step(prev, bar.close, period)
        if index < period - 1:
            return None
        if index == period - 1:
            # Seed from bars 0..index, which must all be in the prior records
            if len(prior_records) < period - 1:
                logger.debug(f"Cannot seed EMA {period}: history starts after bar 0")
                return None
            closes = [r.close for r in trailing(prior_records, period - 1)]
            return mean(closes + [bar.close])
        return ema_step(None, bar.close, period)

    def _next_atr(
        self,
        prior_records: Sequence[IndicatorRecord],
        bar: Bar,
        index: int,
    ) -> Optional[float]:
        period = self._config.atr_period
        last = prior_records[-1]
        if last.atr is not None:
            return calc_atr(last.atr, bar, last.close, period)
        if index < period - 1:
            return None
        if index == period - 1:
            if len(prior_records) < period - 1:
                logger.debug("Cannot seed ATR: history starts after bar 0")
                return None
            bars = [r.bar for r in trailing(prior_records, period - 1)]
            return atr(bars + [bar], period)[-1]
        return calc_atr(None, bar, last.close, period)

    def _sanitize(self, bars: Sequence[Bar]) -> list[Bar]:
        clean = [sanitize_bar(bar) for bar in bars]
        replaced = sum(1 for raw, bar in zip(bars, clean) if raw is not bar)
        if replaced:
            logger.warning(
                f"Replaced non-finite values in {replaced} of {len(bars)} bars with 0.0"
            )
        return clean


def _check_order(bars: Sequence[Bar]) -> None:
    for i in range(1, len(bars)):
        if bars[i].timestamp < bars[i - 1].timestamp:
            raise PreconditionError(
                f"Bar timestamps must be non-decreasing: index {i} "
                f"({bars[i].timestamp}) precedes index {i - 1} ({bars[i - 1].timestamp})"
            )


def process_all(
    bars: Sequence[Bar],
    config: IndicatorConfig,
) -> list[IndicatorRecord]:
    """Batch-compute records for `bars`. See IndicatorEngine.process_all."""
    return IndicatorEngine(config).process_all(bars)


def update_one(
    prior_records: Sequence[IndicatorRecord],
    new_bar: Bar,
    config: IndicatorConfig,
) -> IndicatorRecord:
    """Compute the record for one new bar. See IndicatorEngine.update_one."""
    return IndicatorEngine(config).update_one(prior_records, new_bar)


def apply_tick(
    records: Sequence[IndicatorRecord],
    bar: Bar,
    config: IndicatorConfig,
) -> list[IndicatorRecord]:
    """Replace-or-append a streamed bar. See IndicatorEngine.apply_tick."""
    return IndicatorEngine(config).apply_tick(records, bar)


def compare_paths(bars: Sequence[Bar], config: IndicatorConfig) -> dict[str, float]:
    """Batch vs incremental divergence. See IndicatorEngine.compare_paths."""
    return IndicatorEngine(config).compare_paths(bars)
