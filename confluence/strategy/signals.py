"""Entry signal evaluation — pure functions, no I/O.

Maps the indicator state at one candle index to a ``{name: bool}`` dict.
Only configured conditions whose indicator has a value at that index get
a key; a missing key means "not evaluated", never ``False``.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from confluence.strategy.indicators import BollingerBands, IndicatorSeries
from confluence.strategy.models import (
    BollingerCondition,
    Candle,
    CciBounce,
    CciCondition,
    Conditions,
    HigherTimeframeMode,
)


@dataclass(frozen=True)
class IndicatorSet:
    """Indicator series computed for one backtest run."""

    cci: IndicatorSeries
    rsi: IndicatorSeries
    bollinger: Optional[BollingerBands] = None
    bollinger_htf: Optional[BollingerBands] = None
    htf_ratio: int = 4


def evaluate_signals(
    index: int,
    conditions: Conditions,
    indicators: IndicatorSet,
    candles: Sequence[Candle],
) -> dict[str, bool]:
    """Evaluate every configured condition at candle *index*."""
    signals: dict[str, bool] = {}

    if conditions.cci is not None:
        cci = _cci_signal(index, conditions.cci, indicators.cci)
        if cci is not None:
            signals["cci"] = cci

    if conditions.rsi is not None:
        rsi = indicators.rsi.at(index)
        if rsi is not None:
            signals["rsi"] = rsi < conditions.rsi.threshold

    if conditions.bollinger is not None and indicators.bollinger is not None:
        inside = _bollinger_signal(
            index, conditions.bollinger, indicators, candles[index].close,
        )
        if inside is not None:
            signals["bollinger"] = inside

    return signals


# ── CCI ──────────────────────────────────────────────────────────────────


def _cci_signal(
    index: int, condition: CciCondition, cci: IndicatorSeries,
) -> Optional[bool]:
    current = cci.at(index)
    if current is None:
        return None

    if not isinstance(condition, CciBounce):
        return current < condition.value

    previous = cci.at(index - 1)
    if previous is None:
        return None
    if not (current > condition.trigger_level >= previous):
        return False
    return _breach_pending(index, condition, cci)


def _breach_pending(index: int, condition: CciBounce, cci: IndicatorSeries) -> bool:
    """Look back for a breach below the breach level not yet consumed.

    Walks backwards from ``index - 1``.  An upward cross of the trigger
    level met before any breach means the breach already fired.
    """
    for j in range(index - 1, max(0, index - condition.lookback) - 1, -1):
        value = cci.at(j)
        if value is None:
            break
        if value < condition.breach_level:
            return True
        before = cci.at(j - 1)
        if before is not None and value > condition.trigger_level >= before:
            return False
    return False


# ── Bollinger ────────────────────────────────────────────────────────────


def _inside(bands: BollingerBands, index: int, price: float) -> Optional[bool]:
    lower = bands.lower.at(index)
    upper = bands.upper.at(index)
    if lower is None or upper is None:
        return None
    return lower < price < upper


def _bollinger_signal(
    index: int,
    condition: BollingerCondition,
    indicators: IndicatorSet,
    price: float,
) -> Optional[bool]:
    base = _inside(indicators.bollinger, index, price)

    mode = condition.higher_timeframe_mode
    if (
        not condition.use_higher_timeframe
        or indicators.bollinger_htf is None
        or mode is HigherTimeframeMode.IGNORE
    ):
        return base

    htf = _inside(indicators.bollinger_htf, index // indicators.htf_ratio, price)
    if mode is HigherTimeframeMode.REPLACE:
        return htf
    if base is None or htf is None:
        return None
    return base and htf
