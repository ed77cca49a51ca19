"""CSV Parser - delimited-text bar ingestion.

Reads OHLCV bars from comma, tab, semicolon or whitespace separated text.
Column order follows a header row when one is present, otherwise the
standard time, open, high, low, close, volume layout.
"""

import io
import re
from pathlib import Path

import pandas as pd

from src.modules.features.types import Bar
from src.shared.logger import get_logger

logger = get_logger(__name__)

# Candidate delimiters, in tie-break order
DELIMITERS = (",", "\t", ";")
WHITESPACE = r"\s+"

DEFAULT_COLUMNS = {"time": 0, "open": 1, "high": 2, "low": 3, "close": 4, "volume": 5}

HEADER_KEYWORDS = {
    "time": ("time", "date", "ts", "dt", "timestamp"),
    "open": ("open",),
    "high": ("high",),
    "low": ("low",),
    "close": ("close",),
    "volume": ("vol",),
}

# Numeric timestamps below this are seconds, not milliseconds
SECONDS_CUTOFF = 100_000_000_000

_NUMERIC = re.compile(r"^\d+(\.\d+)?$")


def detect_delimiter(line: str) -> str:
    """Pick the delimiter that splits `line` into the most columns.

    Falls back to a whitespace regex when no candidate yields two columns.
    """
    best, best_cols = ",", 0
    for delimiter in DELIMITERS:
        cols = len(line.split(delimiter))
        if cols > best_cols:
            best, best_cols = delimiter, cols
    return best if best_cols >= 2 else WHITESPACE


def _clean(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().replace('"', "").replace("'", "")


def _column_map(header: list[str]) -> dict[str, int]:
    lowered = [h.lower() for h in header]
    mapping = dict(DEFAULT_COLUMNS)
    for field, keywords in HEADER_KEYWORDS.items():
        for idx, name in enumerate(lowered):
            if any(k in name for k in keywords):
                mapping[field] = idx
                break
    return mapping


def parse_time(raw: str) -> int:
    """Parse a timestamp cell to epoch milliseconds.

    Args:
        raw: Cell text: epoch seconds, epoch milliseconds, or a date string.

    Returns:
        Epoch milliseconds, or 0 when the cell cannot be parsed. Date
        strings without a zone are read as UTC.
    """
    if _NUMERIC.match(raw):
        ts = float(raw)
        return int(ts * 1000) if ts < SECONDS_CUTOFF else int(ts)

    parsed = pd.to_datetime(raw, utc=True, errors="coerce")
    if pd.isna(parsed):
        return 0
    return int(parsed.value // 1_000_000)


def parse_csv(content: str) -> list[Bar]:
    """Parse delimited OHLCV text into bars.

    Rows with an unparseable time or OHLC value are skipped; a missing or
    unparseable volume becomes 0.

    Args:
        content: Raw file content.

    Returns:
        Bars sorted by timestamp. Empty if there are fewer than two lines.
    """
    text = content.strip()
    lines = text.splitlines()
    if len(lines) < 2:
        return []

    delimiter = detect_delimiter(lines[0].strip())
    frame = pd.read_csv(
        io.StringIO(text),
        sep=delimiter,
        header=None,
        dtype=str,
        engine="python",
        skipinitialspace=True,
        skip_blank_lines=True,
        on_bad_lines="skip",
    )

    header = [_clean(v) for v in frame.iloc[0].tolist()]
    is_header = any(re.search(r"[a-zA-Z]", h) for h in header)
    columns = DEFAULT_COLUMNS
    if is_header:
        # Blank names stay in place so indices line up with the data rows
        columns = _column_map(header)
        frame = frame.iloc[1:]

    if max(columns.values()) >= frame.shape[1]:
        logger.warning(f"CSV has {frame.shape[1]} columns, fewer than the column map needs")
        return []

    bars: list[Bar] = []
    skipped = 0
    for row in frame.itertuples(index=False, name=None):
        cells = [_clean(v) for v in row]
        time_ms = parse_time(cells[columns["time"]])
        prices = [
            pd.to_numeric(cells[columns[name]], errors="coerce")
            for name in ("open", "high", "low", "close")
        ]
        if time_ms == 0 or any(pd.isna(p) for p in prices):
            skipped += 1
            continue

        volume = pd.to_numeric(cells[columns["volume"]], errors="coerce")
        bars.append(
            Bar(
                timestamp=time_ms,
                open=float(prices[0]),
                high=float(prices[1]),
                low=float(prices[2]),
                close=float(prices[3]),
                volume=0.0 if pd.isna(volume) else float(volume),
            )
        )

    if skipped:
        logger.warning(f"Skipped {skipped} unparseable CSV rows")
    logger.info(f"Parsed {len(bars)} bars from CSV")

    bars.sort(key=lambda bar: bar.timestamp)
    return bars


def load_csv(path: str | Path) -> list[Bar]:
    """Read and parse an OHLCV CSV file.

    Args:
        path: File path.

    Returns:
        Parsed bars, sorted by timestamp.
    """
    return parse_csv(Path(path).read_text(encoding="utf-8"))
