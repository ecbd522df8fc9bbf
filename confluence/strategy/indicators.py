"""Technical indicators — CCI, RSI, Bollinger Bands, resampling. Pure functions, no I/O.

Every indicator returns an :class:`IndicatorSeries`: the dense values the
window produced plus the candle index of the first value.  Candle
indices before that offset have no value.  Short inputs produce an empty
series instead of raising.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from confluence.strategy.models import Candle


@dataclass(frozen=True)
class IndicatorSeries:
    """Indicator values aligned to a suffix of a candle series.

    ``values[k]`` belongs to candle index ``k + offset``.
    """

    values: tuple[float, ...]
    offset: int

    def at(self, index: int) -> Optional[float]:
        """Value at candle *index*, or ``None`` inside the warm-up or past the end."""
        k = index - self.offset
        if k < 0 or k >= len(self.values):
            return None
        return self.values[k]

    def __len__(self) -> int:
        return len(self.values)

    @property
    def first_index(self) -> Optional[int]:
        """Candle index of the first value, ``None`` for an empty series."""
        return self.offset if self.values else None


@dataclass(frozen=True)
class BollingerBands:
    """Upper / middle / lower envelopes sharing one offset."""

    upper: IndicatorSeries
    middle: IndicatorSeries
    lower: IndicatorSeries


def _empty(offset: int) -> IndicatorSeries:
    return IndicatorSeries(values=(), offset=offset)


# ── CCI ──────────────────────────────────────────────────────────────────


def calculate_cci(
    high: Sequence[float],
    low: Sequence[float],
    close: Sequence[float],
    period: int = 20,
) -> IndicatorSeries:
    """Calculate the Commodity Channel Index.

    Algorithm:
        1. TP = (high + low + close) / 3
        2. mean and mean absolute deviation of TP over *period* bars
        3. CCI = (TP - mean) / (0.015 × mean deviation)

    A flat window (mean deviation exactly 0) yields 0.  The first value
    belongs to candle index ``period - 1``.
    """
    n = len(close)
    if n < period:
        return _empty(period - 1)

    typical = [(high[i] + low[i] + close[i]) / 3.0 for i in range(n)]

    values: list[float] = []
    for i in range(period - 1, n):
        window = typical[i - period + 1 : i + 1]
        mean = sum(window) / period
        mean_dev = sum(abs(tp - mean) for tp in window) / period
        if mean_dev == 0:
            values.append(0.0)
        else:
            values.append((typical[i] - mean) / (0.015 * mean_dev))

    return IndicatorSeries(values=tuple(values), offset=period - 1)


# ── RSI ──────────────────────────────────────────────────────────────────


def calculate_rsi(close: Sequence[float], period: int = 14) -> IndicatorSeries:
    """Calculate Wilder's Relative Strength Index.

    Algorithm (Wilder-smoothed):
        1. delta = close[i] - close[i-1]
        2. Seed average gain/loss = SMA of the first *period* deltas.
        3. Subsequent: avg = (prev_avg × (period-1) + current) / period
        4. RS = avg_gain / avg_loss, or 100 when avg_loss is 0
        5. RSI = 100 - 100 / (1 + RS)

    A window with no movement at all (both averages 0) reads 50.

    The seed needs ``period + 1`` closes, so the first value belongs to
    candle index ``period``.
    """
    if len(close) < period + 1:
        return _empty(period)

    deltas = [close[i] - close[i - 1] for i in range(1, len(close))]
    gains = [max(d, 0.0) for d in deltas]
    losses = [abs(min(d, 0.0)) for d in deltas]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    values: list[float] = [_rsi_from_avgs(avg_gain, avg_loss)]
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        values.append(_rsi_from_avgs(avg_gain, avg_loss))

    return IndicatorSeries(values=tuple(values), offset=period)


def _rsi_from_avgs(avg_gain: float, avg_loss: float) -> float:
    if avg_gain == 0 and avg_loss == 0:
        return 50.0
    rs = 100.0 if avg_loss == 0 else avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


# ── Bollinger Bands ──────────────────────────────────────────────────────


def calculate_bollinger(
    close: Sequence[float],
    period: int = 20,
    multiplier: float = 2.0,
) -> BollingerBands:
    """Calculate Bollinger Bands.

    Middle = SMA(close, *period*)
    Upper  = middle + *multiplier* × σ
    Lower  = middle − *multiplier* × σ

    σ is the population standard deviation of the window.
    """
    offset = period - 1
    if len(close) < period:
        return BollingerBands(_empty(offset), _empty(offset), _empty(offset))

    upper: list[float] = []
    middle: list[float] = []
    lower: list[float] = []

    for i in range(offset, len(close)):
        window = close[i - period + 1 : i + 1]
        sma = sum(window) / period
        variance = sum((x - sma) ** 2 for x in window) / period
        sigma = math.sqrt(variance)

        middle.append(sma)
        upper.append(sma + multiplier * sigma)
        lower.append(sma - multiplier * sigma)

    return BollingerBands(
        upper=IndicatorSeries(tuple(upper), offset),
        middle=IndicatorSeries(tuple(middle), offset),
        lower=IndicatorSeries(tuple(lower), offset),
    )


# ── Resampling ───────────────────────────────────────────────────────────


def resample(candles: Sequence[Candle], ratio: int = 4) -> tuple[Candle, ...]:
    """Aggregate consecutive blocks of *ratio* candles into one bar each.

    The final block may hold fewer than *ratio* candles.  Block ``b``
    covers candle indices ``b * ratio`` to ``b * ratio + ratio - 1``, so
    a higher-timeframe value looked up for candle ``i`` at block
    ``i // ratio`` may include later candles of the same block.
    """
    if ratio < 1:
        raise ValueError(f"ratio must be >= 1, got {ratio}")

    blocks: list[Candle] = []
    for start in range(0, len(candles), ratio):
        chunk = candles[start : start + ratio]
        blocks.append(
            Candle(
                timestamp=chunk[0].timestamp,
                open=chunk[0].open,
                high=max(c.high for c in chunk),
                low=min(c.low for c in chunk),
                close=chunk[-1].close,
                volume=sum(c.volume for c in chunk),
            )
        )
    return tuple(blocks)
