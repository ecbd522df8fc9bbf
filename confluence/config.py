"""Confluence — application configuration.

Loads .env variables into a typed config object.
Validates numeric variables and the log level on load.
"""

import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class StatsSettings:
    """Constants used by the metrics aggregator."""

    periods_per_year: float = 252.0
    trades_per_period: float = 20.0
    bars_per_month: float = 720.0  # hours in a 30-day month; hourly bars only

    @property
    def sharpe_scale(self) -> float:
        return math.sqrt(self.periods_per_year / self.trades_per_period)


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    symbol: str = "BTCUSDT"
    data_path: str = "data/candles.csv"
    cci_period: int = 20
    rsi_period: int = 14
    htf_ratio: int = 4
    sharpe_periods_per_year: float = 252.0
    sharpe_trades_per_period: float = 20.0
    bars_per_month: float = 720.0
    log_level: str = "INFO"

    @property
    def stats_settings(self) -> StatsSettings:
        """Return the metrics constants as a ``StatsSettings``."""
        return StatsSettings(
            periods_per_year=self.sharpe_periods_per_year,
            trades_per_period=self.sharpe_trades_per_period,
            bars_per_month=self.bars_per_month,
        )


def _positive(name: str, default: str, cast):
    raw = os.environ.get(name, default)
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _log_level() -> str:
    raw = os.environ.get("LOG_LEVEL", "INFO")
    level = raw.strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(
            f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {raw!r}"
        )
    return level


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` naming the variable when a numeric variable is
    malformed or not positive, or when LOG_LEVEL is not a logging level.
    """
    load_dotenv(dotenv_path=env_path)

    return Config(
        symbol=os.environ.get("SYMBOL", "BTCUSDT"),
        data_path=os.environ.get("DATA_PATH", "data/candles.csv"),
        cci_period=_positive("CCI_PERIOD", "20", int),
        rsi_period=_positive("RSI_PERIOD", "14", int),
        htf_ratio=_positive("HTF_RATIO", "4", int),
        sharpe_periods_per_year=_positive("SHARPE_PERIODS_PER_YEAR", "252", float),
        sharpe_trades_per_period=_positive("SHARPE_TRADES_PER_PERIOD", "20", float),
        bars_per_month=_positive("BARS_PER_MONTH", "720", float),
        log_level=_log_level(),
    )
