"""Strategy data models — candles, strategy configuration, trade records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar. ``timestamp`` is epoch milliseconds."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


# ── Entry conditions ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class CciBounce:
    """CCI dips below -120, then crosses back above -100."""

    breach_level: float = -120.0
    trigger_level: float = -100.0
    lookback: int = 10


@dataclass(frozen=True)
class CciThreshold:
    """CCI below *value* (level condition)."""

    value: float


CciCondition = Union[CciBounce, CciThreshold]


@dataclass(frozen=True)
class RsiCondition:
    """RSI below *threshold* (oversold, long-only)."""

    threshold: float


class HigherTimeframeMode(str, Enum):
    """How the higher-timeframe Bollinger band takes part in the signal."""

    IGNORE = "ignore"  # computed, never consulted
    REPLACE = "replace"
    CONFIRM = "confirm"


@dataclass(frozen=True)
class BollingerCondition:
    """Close strictly inside the Bollinger envelope."""

    period: int = 21
    multiplier: float = 2.0
    use_higher_timeframe: bool = False
    higher_timeframe_multiplier: float = 2.25
    higher_timeframe_mode: HigherTimeframeMode = HigherTimeframeMode.IGNORE


@dataclass(frozen=True)
class Conditions:
    """Configured entry conditions. ``None`` means not configured."""

    cci: Optional[CciCondition] = None
    rsi: Optional[RsiCondition] = None
    bollinger: Optional[BollingerCondition] = None

    @property
    def configured_count(self) -> int:
        return sum(c is not None for c in (self.cci, self.rsi, self.bollinger))


@dataclass(frozen=True)
class ExitRules:
    """Exit thresholds in percent / bars. ``None`` disables a rule."""

    stop_loss_pct: Optional[float] = None
    take_profit_pct: Optional[float] = None
    max_hold_bars: Optional[int] = None


@dataclass(frozen=True)
class StrategyConfig:
    """A complete strategy: entry conditions, exits and signal quorum."""

    conditions: Conditions
    exit_rules: ExitRules = field(default_factory=ExitRules)
    required_signals: int = 1


# ── Trades ───────────────────────────────────────────────────────────────


class ExitReason(str, Enum):
    STOP_LOSS = "StopLoss"
    TAKE_PROFIT = "TakeProfit"
    TIME_EXIT = "TimeExit"
    END_OF_DATA = "EndOfData"


@dataclass(frozen=True)
class TradeRecord:
    """One long trade. Exit fields stay ``None`` while the trade is open.

    ``signals_at_entry`` accepts any mapping and is stored as ordered
    ``(name, fired)`` pairs so records stay immutable and hashable.
    """

    entry_index: int
    entry_price: float
    entry_timestamp: int
    signals_at_entry: tuple[tuple[str, bool], ...]
    active_signal_count: int
    exit_index: Optional[int] = None
    exit_price: Optional[float] = None
    exit_timestamp: Optional[int] = None
    exit_reason: Optional[ExitReason] = None
    profit_pct: Optional[float] = None
    hold_bars: Optional[int] = None

    def __post_init__(self) -> None:
        pairs = tuple(dict(self.signals_at_entry).items())
        object.__setattr__(self, "signals_at_entry", pairs)

    @property
    def is_open(self) -> bool:
        return self.exit_index is None
