"""Configuration loader for the indicator engine.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field

# EMA tunnel set: fast line, tunnel pair, trend pair
DEFAULT_EMA_PERIODS: tuple[int, ...] = (12, 144, 169, 576, 676)


class PreconditionError(ValueError):
    """Raised when the caller violates an engine precondition.

    Covers misuse only (bad configuration, out-of-order bars). Missing
    history is never an error; it yields "not yet determinable" values.
    """


@dataclass(frozen=True)
class IndicatorConfig:
    """Indicator periods and kernel parameters.

    Attributes:
        ema_periods: One EMA is maintained per period.
        rsi_period: Wilder RSI period.
        atr_period: Wilder ATR period.
        adx_period: Wilder ADX period (ADX needs 2 * period bars).
        kernel_bandwidth: Gaussian kernel bandwidth, in bars.
        kernel_multiplier: Band half-width as a multiple of the weighted MAE.
        kernel_window: Max lookback (bars) of the kernel regression.
        history_cap: Trailing bars re-run for RSI/ADX on incremental updates.
        volume_osc_short: Short volume SMA period.
        volume_osc_long: Long volume SMA period.
    """

    ema_periods: tuple[int, ...] = DEFAULT_EMA_PERIODS
    rsi_period: int = 14
    atr_period: int = 14
    adx_period: int = 14
    kernel_bandwidth: float = 8.0
    kernel_multiplier: float = 3.0
    kernel_window: int = 500
    history_cap: int = 300
    volume_osc_short: int = 1
    volume_osc_long: int = 14

    def validate(self) -> None:
        """Check the configuration is usable.

        Raises:
            PreconditionError: If any parameter is out of range.
        """
        if not self.ema_periods:
            raise PreconditionError("At least one EMA period must be configured")

        periods = {
            "ema_periods": min(self.ema_periods),
            "rsi_period": self.rsi_period,
            "atr_period": self.atr_period,
            "adx_period": self.adx_period,
            "kernel_window": self.kernel_window,
            "history_cap": self.history_cap,
            "volume_osc_short": self.volume_osc_short,
            "volume_osc_long": self.volume_osc_long,
        }
        for name, value in periods.items():
            if value < 1:
                raise PreconditionError(f"{name} must be >= 1, got {value}")

        if self.kernel_bandwidth <= 0:
            raise PreconditionError(
                f"kernel_bandwidth must be > 0, got {self.kernel_bandwidth}"
            )
        if self.kernel_multiplier < 0:
            raise PreconditionError(
                f"kernel_multiplier must be >= 0, got {self.kernel_multiplier}"
            )
        if self.volume_osc_short > self.volume_osc_long:
            raise PreconditionError(
                f"volume_osc_short ({self.volume_osc_short}) must not exceed "
                f"volume_osc_long ({self.volume_osc_long})"
            )


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables.

    LOG_LEVEL is not part of this object; `get_logger` reads it directly.

    Attributes:
        environment: Current environment (dev/prod).
        gemini_api_key: API key for the market summary client. Empty
            means the summary client runs unconfigured.
        gemini_model: Model used for market summaries.
        indicators: Indicator engine parameters.
    """

    environment: str
    gemini_api_key: str
    gemini_model: str
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise PreconditionError(f"{name} must be an integer, got {raw!r}") from e


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise PreconditionError(f"{name} must be a number, got {raw!r}") from e


def _periods_env(name: str, default: tuple[int, ...]) -> tuple[int, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return tuple(int(part) for part in raw.split(",") if part.strip())
    except ValueError as e:
        raise PreconditionError(
            f"{name} must be a comma-separated list of integers, got {raw!r}"
        ) from e


def load_indicator_config() -> IndicatorConfig:
    """Load and validate indicator parameters from INDICATOR_* variables.

    Returns:
        Validated IndicatorConfig.

    Raises:
        PreconditionError: If a variable is malformed or out of range.
    """
    defaults = IndicatorConfig()
    config = IndicatorConfig(
        ema_periods=_periods_env("INDICATOR_EMA_PERIODS", defaults.ema_periods),
        rsi_period=_int_env("INDICATOR_RSI_PERIOD", defaults.rsi_period),
        atr_period=_int_env("INDICATOR_ATR_PERIOD", defaults.atr_period),
        adx_period=_int_env("INDICATOR_ADX_PERIOD", defaults.adx_period),
        kernel_bandwidth=_float_env(
            "INDICATOR_KERNEL_BANDWIDTH", defaults.kernel_bandwidth
        ),
        kernel_multiplier=_float_env(
            "INDICATOR_KERNEL_MULTIPLIER", defaults.kernel_multiplier
        ),
        kernel_window=_int_env("INDICATOR_KERNEL_WINDOW", defaults.kernel_window),
        history_cap=_int_env("INDICATOR_HISTORY_CAP", defaults.history_cap),
        volume_osc_short=_int_env(
            "INDICATOR_VOLUME_OSC_SHORT", defaults.volume_osc_short
        ),
        volume_osc_long=_int_env("INDICATOR_VOLUME_OSC_LONG", defaults.volume_osc_long),
    )
    config.validate()
    return config


def load_config() -> Config:
    """Load configuration from environment variables.

    Returns:
        Config object with all settings.

    Raises:
        PreconditionError: If indicator variables are malformed.
    """
    return Config(
        environment=os.getenv("ENVIRONMENT", "dev"),
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        indicators=load_indicator_config(),
    )
