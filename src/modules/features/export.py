"""Export boundary - records to display rows and pandas frames.

This is the only place "not yet determinable" values are replaced with
display defaults. The engine itself never substitutes.
"""

from typing import Any, Sequence

import pandas as pd

from src.modules.features.types import Bar, IndicatorRecord

# Required columns in input DataFrame
REQUIRED_COLUMNS = {"open", "high", "low", "close", "volume"}

# RSI midpoint shown before RSI is determinable
DISPLAY_RSI_DEFAULT = 50.0

_CLOSE_DEFAULTED = ("ema_", "kernel_")


def _display_default(name: str, close: float) -> float:
    if name == "rsi":
        return DISPLAY_RSI_DEFAULT
    if name.startswith(_CLOSE_DEFAULTED):
        return close
    # atr, adx, volume_osc
    return 0.0


def to_display_row(record: IndicatorRecord) -> dict[str, float]:
    """Flatten a record for display, substituting defaults for missing values.

    Defaults: RSI -> 50, EMA and kernel fields -> the bar's close,
    ATR / ADX / volume oscillator -> 0.

    Args:
        record: Indicator record.

    Returns:
        Dict with time, OHLCV and every indicator field, no None values.
    """
    bar = record.bar
    row: dict[str, float] = {
        "time": bar.timestamp,
        "open": bar.open,
        "high": bar.high,
        "low": bar.low,
        "close": bar.close,
        "volume": bar.volume,
    }
    for name, value in record.indicator_values().items():
        row[name] = value if value is not None else _display_default(name, bar.close)
    return row


def records_to_frame(
    records: Sequence[IndicatorRecord],
    display: bool = False,
) -> pd.DataFrame:
    """Convert records to a DataFrame indexed by bar time.

    Args:
        records: Indicator records, time-ascending.
        display: If True, apply display defaults. Otherwise missing values
            are NaN.

    Returns:
        DataFrame with columns open, high, low, close, volume and one
        column per indicator field. Index is a DatetimeIndex named "time".
    """
    rows: list[dict[str, Any]] = []
    for record in records:
        if display:
            row = to_display_row(record)
        else:
            bar = record.bar
            row = {
                "time": bar.timestamp,
                "open": bar.open,
                "high": bar.high,
                "low": bar.low,
                "close": bar.close,
                "volume": bar.volume,
            }
            row.update(
                {
                    name: float("nan") if value is None else value
                    for name, value in record.indicator_values().items()
                }
            )
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=sorted(REQUIRED_COLUMNS))

    frame = pd.DataFrame(rows)
    frame.index = pd.DatetimeIndex(pd.to_datetime(frame.pop("time"), unit="ms"), name="time")
    return frame


def bars_from_frame(df: pd.DataFrame) -> list[Bar]:
    """Convert an OHLCV DataFrame to bars.

    Timestamps come from a `time` column (epoch ms) when present, otherwise
    from a DatetimeIndex (tz-aware indexes are converted to UTC).

    Args:
        df: DataFrame with columns: open, high, low, close, volume.

    Returns:
        Bars in frame order.

    Raises:
        ValueError: If required columns are missing or no timestamps exist.
    """
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    if "time" in df.columns:
        times = [int(t) for t in df["time"]]
    elif isinstance(df.index, pd.DatetimeIndex):
        index = df.index
        if index.tz is not None:
            index = index.tz_convert("UTC").tz_localize(None)
        times = [int(t) for t in (index - pd.Timestamp(0)) // pd.Timedelta(milliseconds=1)]
    else:
        raise ValueError("DataFrame needs a 'time' column or a DatetimeIndex")

    return [
        Bar(
            timestamp=ts,
            open=float(o),
            high=float(h),
            low=float(lo),
            close=float(c),
            volume=float(v),
        )
        for ts, o, h, lo, c, v in zip(
            times,
            df["open"],
            df["high"],
            df["low"],
            df["close"],
            df["volume"],
        )
    ]
