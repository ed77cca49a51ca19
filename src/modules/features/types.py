from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Bar:
    """One OHLCV observation. `timestamp` is epoch milliseconds."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class IndicatorRecord:
    """A bar plus every indicator value known as of that bar.

    `None` means "not yet determinable" (insufficient history). Display
    defaults are applied only by the export boundary, never here.

    `index` is the bar's 0-based position in the full series, so a record
    still knows where it sits when only a trailing slice of the history is
    kept.
    """

    bar: Bar
    index: int = 0
    ema: dict[int, Optional[float]] = field(default_factory=dict)
    rsi: Optional[float] = None
    atr: Optional[float] = None
    adx: Optional[float] = None
    kernel_mid: Optional[float] = None
    kernel_upper: Optional[float] = None
    kernel_lower: Optional[float] = None
    volume_osc: Optional[float] = None

    @property
    def timestamp(self) -> int:
        return self.bar.timestamp

    @property
    def close(self) -> float:
        return self.bar.close

    def indicator_values(self) -> dict[str, Optional[float]]:
        """Flat name -> value view of every indicator field.

        EMA fields are named `ema_<period>` in ascending period order.
        """
        values: dict[str, Optional[float]] = {
            f"ema_{period}": self.ema[period] for period in sorted(self.ema)
        }
        values.update(
            {
                "rsi": self.rsi,
                "atr": self.atr,
                "adx": self.adx,
                "kernel_mid": self.kernel_mid,
                "kernel_upper": self.kernel_upper,
                "kernel_lower": self.kernel_lower,
                "volume_osc": self.volume_osc,
            }
        )
        return values
