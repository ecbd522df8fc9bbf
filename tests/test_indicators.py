"""Tests for the indicator library — warm-up offsets, sentinels, known values."""

import math

import pytest

from confluence.strategy.indicators import (
    IndicatorSeries,
    calculate_bollinger,
    calculate_cci,
    calculate_rsi,
    resample,
)
from confluence.strategy.models import Candle


# ── Helpers ──────────────────────────────────────────────────────────────


def _make_candle(ts, o, h, l, c, vol=1000.0):
    return Candle(timestamp=ts, open=o, high=h, low=l, close=c, volume=vol)


def _flat(n, price=100.0):
    return [price] * n


# ── IndicatorSeries ──────────────────────────────────────────────────────


class TestIndicatorSeries:

    def test_lookup_respects_offset(self):
        s = IndicatorSeries(values=(1.0, 2.0, 3.0), offset=4)
        assert s.at(3) is None
        assert s.at(4) == 1.0
        assert s.at(6) == 3.0
        assert s.at(7) is None
        assert s.first_index == 4

    def test_empty_series(self):
        s = IndicatorSeries(values=(), offset=19)
        assert len(s) == 0
        assert s.first_index is None
        assert s.at(19) is None


# ── CCI ──────────────────────────────────────────────────────────────────


class TestCCI:

    def test_warmup_offset(self):
        prices = _flat(30)
        cci = calculate_cci(prices, prices, prices, period=20)
        assert cci.offset == 19
        assert len(cci) == 11
        for i in range(19):
            assert cci.at(i) is None
        assert cci.at(19) is not None

    def test_flat_window_is_zero(self):
        """Mean deviation 0 → CCI defined as exactly 0."""
        prices = _flat(30)
        cci = calculate_cci(prices, prices, prices, period=20)
        assert all(v == 0.0 for v in cci.values)

    def test_known_value(self):
        # TP = 1, 2, 3 → mean 2, MAD 2/3 → (3 - 2) / (0.015 × 2/3) = 100
        p = [1.0, 2.0, 3.0]
        cci = calculate_cci(p, p, p, period=3)
        assert cci.values[0] == pytest.approx(100.0)

    def test_uses_typical_price(self):
        high = [2.0, 4.0, 6.0]
        low = [0.0, 0.0, 0.0]
        close = [1.0, 2.0, 3.0]
        # TP = 1, 2, 3 again
        cci = calculate_cci(high, low, close, period=3)
        assert cci.values[0] == pytest.approx(100.0)

    def test_insufficient_data_returns_empty(self):
        p = _flat(5)
        cci = calculate_cci(p, p, p, period=20)
        assert len(cci) == 0
        assert cci.at(4) is None

    def test_empty_input(self):
        assert len(calculate_cci([], [], [], period=20)) == 0


# ── RSI ──────────────────────────────────────────────────────────────────


class TestRSI:

    def test_flat_series_reads_50(self):
        """No movement: both averages 0 → neutral 50, not the RS sentinel."""
        rsi = calculate_rsi(_flat(30), period=14)
        assert rsi.offset == 14
        assert len(rsi) == 16
        assert all(v == 50.0 for v in rsi.values)

    def test_warmup_offset(self):
        rsi = calculate_rsi(_flat(30), period=14)
        for i in range(14):
            assert rsi.at(i) is None
        assert rsi.at(14) == 50.0

    def test_zero_loss_uses_sentinel(self):
        """Only gains → avg_loss 0 → RS = 100 → RSI = 100 - 100/101."""
        closes = [100.0 + i for i in range(20)]
        rsi = calculate_rsi(closes, period=14)
        expected = 100.0 - 100.0 / 101.0
        assert all(v == pytest.approx(expected) for v in rsi.values)
        assert all(math.isfinite(v) for v in rsi.values)

    def test_known_values_wilder_smoothing(self):
        # deltas +1, -1, +2; seed (period 2): gain 0.5, loss 0.5 → 50
        # next: gain (0.5 + 2) / 2 = 1.25, loss 0.25 / 1 → RS 5 → 83.33
        rsi = calculate_rsi([10.0, 11.0, 10.0, 12.0], period=2)
        assert rsi.offset == 2
        assert rsi.values[0] == pytest.approx(50.0)
        assert rsi.values[1] == pytest.approx(100.0 - 100.0 / 6.0)

    def test_bounded(self):
        closes = [100, 98, 97, 99, 95, 94, 96, 90, 91, 89, 92, 88, 87, 90, 86, 85]
        rsi = calculate_rsi(closes, period=5)
        assert all(0.0 <= v <= 100.0 for v in rsi.values)

    def test_insufficient_data_returns_empty(self):
        rsi = calculate_rsi(_flat(14), period=14)
        assert len(rsi) == 0


# ── Bollinger ────────────────────────────────────────────────────────────


class TestBollinger:

    def test_flat_series_collapses_bands(self):
        bands = calculate_bollinger(_flat(25), period=20, multiplier=2.0)
        assert bands.middle.offset == 19
        assert len(bands.middle) == 6
        for i in range(19, 25):
            assert bands.upper.at(i) == 100.0
            assert bands.middle.at(i) == 100.0
            assert bands.lower.at(i) == 100.0

    def test_population_std_dev(self):
        # window 1, 2, 3: SMA 2, σ = sqrt(2/3) (divide by n, not n - 1)
        bands = calculate_bollinger([1.0, 2.0, 3.0], period=3, multiplier=2.0)
        sigma = math.sqrt(2.0 / 3.0)
        assert bands.middle.values[0] == pytest.approx(2.0)
        assert bands.upper.values[0] == pytest.approx(2.0 + 2.0 * sigma)
        assert bands.lower.values[0] == pytest.approx(2.0 - 2.0 * sigma)

    def test_warmup_absent(self):
        bands = calculate_bollinger([float(i) for i in range(30)], period=21)
        assert bands.lower.at(19) is None
        assert bands.lower.at(20) is not None

    def test_insufficient_data_returns_empty(self):
        bands = calculate_bollinger(_flat(3), period=20)
        assert len(bands.upper) == 0
        assert len(bands.lower) == 0


# ── Resampling ───────────────────────────────────────────────────────────


class TestResample:

    def _candles(self, n):
        return [
            _make_candle(1_000 * i, 10.0 + i, 12.0 + i, 9.0 + i, 11.0 + i, vol=1.0 + i)
            for i in range(n)
        ]

    def test_blocks_aggregate_ohlcv(self):
        htf = resample(self._candles(8), ratio=4)
        assert len(htf) == 2
        first = htf[0]
        assert first.timestamp == 0
        assert first.open == 10.0
        assert first.high == 15.0
        assert first.low == 9.0
        assert first.close == 14.0
        assert first.volume == 1.0 + 2.0 + 3.0 + 4.0

    def test_short_final_block(self):
        htf = resample(self._candles(10), ratio=4)
        assert len(htf) == 3
        last = htf[-1]
        assert last.open == 18.0
        assert last.close == 20.0
        assert last.volume == 9.0 + 10.0

    def test_empty_input(self):
        assert resample([], ratio=4) == ()

    def test_rejects_zero_ratio(self):
        with pytest.raises(ValueError, match="ratio"):
            resample(self._candles(4), ratio=0)
