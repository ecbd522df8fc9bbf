"""Backtest engine — replays a candle series through entry signals and exit rules.

Walks the candles once, chronologically, holding at most one long
position.  Entries fill at the next bar's open; exits fill at the
current bar's close.  No real orders are placed.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Optional

from confluence.backtest.stats import PerformanceReport, calculate_stats
from confluence.config import Config
from confluence.risk.exits import check_exit, profit_pct
from confluence.strategy.indicators import (
    BollingerBands,
    IndicatorSeries,
    calculate_bollinger,
    calculate_cci,
    calculate_rsi,
    resample,
)
from confluence.strategy.models import (
    Candle,
    ExitReason,
    StrategyConfig,
    TradeRecord,
)
from confluence.strategy.signals import IndicatorSet, evaluate_signals

logger = logging.getLogger("confluence.backtest")


@dataclass(frozen=True)
class BacktestResult:
    """A finished run: the report plus every closed trade, oldest first."""

    report: PerformanceReport
    trades: tuple[TradeRecord, ...]


class BacktestEngine:
    """Simulates a long-only strategy on one candle series.

    Indicator series are memoised per engine, keyed by kind and
    parameters, so running several strategies on the same candles
    computes each indicator once.

    Args:
        candles: Candle series, oldest first.
        config: Application configuration (indicator periods, HTF ratio,
            metrics constants).  Defaults to ``Config()``.
    """

    def __init__(
        self, candles: Sequence[Candle], config: Optional[Config] = None,
    ) -> None:
        self._candles: tuple[Candle, ...] = tuple(candles)
        self._config = config or Config()
        self._closes = [c.close for c in self._candles]
        self._cache: dict[tuple, object] = {}

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def candles(self) -> tuple[Candle, ...]:
        return self._candles

    @property
    def start_index(self) -> int:
        """First bar on which an entry can be evaluated."""
        return max(self._config.cci_period, self._config.rsi_period) + 1

    def run(self, strategy: StrategyConfig) -> BacktestResult:
        """Execute a full backtest and score it."""
        trades = self.simulate(strategy)
        report = calculate_stats(
            trades, len(self._candles), self._config.stats_settings,
        )
        logger.info(
            "Backtest complete: %d trades, win rate %.2f%%, return %.2f%%",
            report.total_trades, report.win_rate, report.total_return,
        )
        return BacktestResult(report=report, trades=trades)

    def simulate(self, strategy: StrategyConfig) -> tuple[TradeRecord, ...]:
        """Run the position state machine and return the closed trades."""
        candles = self._candles
        indicators = self.indicators_for(strategy)
        rules = strategy.exit_rules

        open_trade: Optional[TradeRecord] = None
        closed: list[TradeRecord] = []

        for i in range(self.start_index, len(candles) - 1):
            candle = candles[i]

            # 1. In position: check exits at this bar's close
            if open_trade is not None:
                profit = profit_pct(open_trade.entry_price, candle.close)
                reason = check_exit(rules, profit, i - open_trade.entry_index)
                if reason is not None:
                    closed.append(self._close(open_trade, i, reason))
                    open_trade = None
                continue

            # 2. Flat: evaluate signals, fill at the next bar's open
            signals = evaluate_signals(i, strategy.conditions, indicators, candles)
            active = sum(1 for fired in signals.values() if fired)
            if not signals or active < strategy.required_signals:
                continue

            nxt = candles[i + 1]
            open_trade = TradeRecord(
                entry_index=i + 1,
                entry_price=nxt.open,
                entry_timestamp=nxt.timestamp,
                signals_at_entry=signals,
                active_signal_count=active,
            )
            logger.debug(
                "Entry at bar %d price %.4f signals %s", i + 1, nxt.open, signals,
            )

        # Close any remaining position at the last candle close
        if open_trade is not None:
            closed.append(
                self._close(open_trade, len(candles) - 1, ExitReason.END_OF_DATA)
            )

        return tuple(closed)

    def indicators_for(self, strategy: StrategyConfig) -> IndicatorSet:
        """Collect (memoised) indicator series needed by *strategy*."""
        cfg = self._config
        bb_cond = strategy.conditions.bollinger

        bollinger = None
        bollinger_htf = None
        if bb_cond is not None:
            bollinger = self._bollinger(bb_cond.period, bb_cond.multiplier)
            if bb_cond.use_higher_timeframe:
                bollinger_htf = self._bollinger(
                    bb_cond.period,
                    bb_cond.higher_timeframe_multiplier,
                    ratio=cfg.htf_ratio,
                )
        return IndicatorSet(
            cci=self._cci(cfg.cci_period),
            rsi=self._rsi(cfg.rsi_period),
            bollinger=bollinger,
            bollinger_htf=bollinger_htf,
            htf_ratio=cfg.htf_ratio,
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    def _close(
        self, trade: TradeRecord, index: int, reason: ExitReason,
    ) -> TradeRecord:
        candle = self._candles[index]
        profit = profit_pct(trade.entry_price, candle.close)
        logger.debug(
            "Exit at bar %d price %.4f (%s) profit %.2f%%",
            index, candle.close, reason.value, profit,
        )
        return replace(
            trade,
            exit_index=index,
            exit_price=candle.close,
            exit_timestamp=candle.timestamp,
            exit_reason=reason,
            profit_pct=profit,
            hold_bars=index - trade.entry_index,
        )

    def _cci(self, period: int) -> IndicatorSeries:
        key = ("cci", period)
        if key not in self._cache:
            self._cache[key] = calculate_cci(
                [c.high for c in self._candles],
                [c.low for c in self._candles],
                self._closes,
                period,
            )
        return self._cache[key]

    def _rsi(self, period: int) -> IndicatorSeries:
        key = ("rsi", period)
        if key not in self._cache:
            self._cache[key] = calculate_rsi(self._closes, period)
        return self._cache[key]

    def _bollinger(
        self, period: int, multiplier: float, ratio: int = 1,
    ) -> BollingerBands:
        key = ("bollinger", period, multiplier, ratio)
        if key not in self._cache:
            if ratio == 1:
                closes = self._closes
            else:
                closes = [c.close for c in resample(self._candles, ratio)]
            self._cache[key] = calculate_bollinger(closes, period, multiplier)
        return self._cache[key]
