"""Market Summary - short AI-written commentary on the latest bar.

The client handle is passed to whatever needs a summary. When no API key
is configured, `UnconfiguredSummaryClient` answers with a fixed message
instead of a network call.
"""

from enum import Enum
from typing import Any, Optional, Protocol

import httpx

from src.modules.features.types import IndicatorRecord
from src.shared.config import Config
from src.shared.logger import get_logger

logger = get_logger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"

NOT_CONFIGURED_MESSAGE = (
    "API key not configured. Set GEMINI_API_KEY to enable market summaries."
)
UNAVAILABLE_MESSAGE = "Analysis currently unavailable due to network or API limits."
EMPTY_MESSAGE = "No analysis generated."


class SummaryStrategy(Enum):
    """Which strategy the summary should be written for."""

    TUNNEL = "TUNNEL"
    SCALPER = "SCALPER"


class SummaryClient(Protocol):
    """Anything that can turn the latest record into a short market summary."""

    @property
    def is_configured(self) -> bool:
        """False when the client answers without calling a model."""
        ...

    def analyze(
        self,
        record: IndicatorRecord,
        trend: str,
        strategy: SummaryStrategy = SummaryStrategy.TUNNEL,
    ) -> str:
        """Return a short summary for `record`."""
        ...


def _fmt(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.2f}"


def trend_alignment(record: IndicatorRecord) -> str:
    """Describe how the record's EMAs are stacked.

    Bullish when every EMA sits above every slower one, bearish when every
    EMA sits below, otherwise not aligned (or insufficient data).
    """
    values = [record.ema[p] for p in sorted(record.ema)]
    if len(values) < 2 or any(v is None for v in values):
        return "Insufficient data for EMA alignment"

    pairs = list(zip(values, values[1:]))
    if all(fast > slow for fast, slow in pairs):
        return "Bullish Alignment (fast EMAs above slow EMAs)"
    if all(fast < slow for fast, slow in pairs):
        return "Bearish Alignment (fast EMAs below slow EMAs)"
    return "Not Aligned"


def build_prompt(
    record: IndicatorRecord,
    trend: str,
    strategy: SummaryStrategy = SummaryStrategy.TUNNEL,
) -> str:
    """Build the model prompt for one record.

    Args:
        record: Latest indicator record.
        trend: Human-readable trend/signal description.
        strategy: Strategy the commentary is for.

    Returns:
        Prompt text.
    """
    lines = [f"- Price: ${record.close:.2f}"]

    if strategy is SummaryStrategy.SCALPER:
        intro = (
            "Act as a professional crypto quant scalper using a "
            "Nadaraya-Watson Envelope + RSI Reversal Strategy."
        )
        lines += [
            f"- RSI: {_fmt(record.rsi)} (Oversold < 30, Overbought > 70)",
            f"- Nadaraya-Watson Upper: {_fmt(record.kernel_upper)}",
            f"- Nadaraya-Watson Lower: {_fmt(record.kernel_lower)}",
            f"- ATR (Vol): {_fmt(record.atr)}",
        ]
        ask = (
            "Provide a concise 2-sentence analysis on whether a reversal "
            "is likely or if we should wait."
        )
    else:
        intro = "Act as a professional crypto trader using the Vegas Tunnel Strategy."
        lines += [f"- EMA {period}: {_fmt(record.ema[period])}" for period in sorted(record.ema)]
        lines += [
            f"- ADX: {_fmt(record.adx)}",
            f"- ATR (Vol): {_fmt(record.atr)}",
        ]
        ask = (
            "Provide a concise 2-sentence analysis on trend direction and "
            "tunnel breakout strength."
        )

    return "\n".join(
        [intro, "", "Current Market Data:", *lines, "", f"Signal: {trend}", "", ask]
    )


class UnconfiguredSummaryClient:
    """Summary client used when no API key is available."""

    @property
    def is_configured(self) -> bool:
        return False

    def analyze(
        self,
        record: IndicatorRecord,
        trend: str,
        strategy: SummaryStrategy = SummaryStrategy.TUNNEL,
    ) -> str:
        return NOT_CONFIGURED_MESSAGE


class GeminiSummaryClient:
    """Summary client backed by the Gemini generateContent REST API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        timeout: float = 10.0,
    ) -> None:
        """Initialize GeminiSummaryClient.

        Args:
            api_key: Gemini API key.
            model: Model name.
            timeout: HTTP timeout in seconds.

        Raises:
            ValueError: If api_key is empty.
        """
        if not api_key:
            raise ValueError("api_key must not be empty, use UnconfiguredSummaryClient")
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._url = f"{GEMINI_API_URL}/{model}:generateContent"

    @property
    def is_configured(self) -> bool:
        return True

    def analyze(
        self,
        record: IndicatorRecord,
        trend: str,
        strategy: SummaryStrategy = SummaryStrategy.TUNNEL,
    ) -> str:
        """Request a summary for `record`.

        Args:
            record: Latest indicator record.
            trend: Trend/signal description included in the prompt.
            strategy: Strategy the commentary is for.

        Returns:
            Model text, or a fixed message when the call fails or the
            response carries no text.
        """
        prompt = build_prompt(record, trend, strategy)

        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(
                    self._url,
                    headers={"x-goog-api-key": self._api_key},
                    json={"contents": [{"parts": [{"text": prompt}]}]},
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Market summary request failed: {e}")
            return UNAVAILABLE_MESSAGE

        text = _extract_text(payload)
        if not text:
            logger.warning("Market summary response contained no text")
            return EMPTY_MESSAGE

        logger.info(f"Market summary received from {self._model}")
        return text


def _extract_text(payload: Any) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()


def build_summary_client(config: Config) -> SummaryClient:
    """Pick the summary client for this configuration.

    Args:
        config: Application configuration.

    Returns:
        GeminiSummaryClient when an API key is set, otherwise
        UnconfiguredSummaryClient.
    """
    if not config.gemini_api_key:
        logger.info("GEMINI_API_KEY not set, market summaries disabled")
        return UnconfiguredSummaryClient()
    return GeminiSummaryClient(api_key=config.gemini_api_key, model=config.gemini_model)
