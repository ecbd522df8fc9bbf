"""Backtest statistics — pure functions for trade-series analysis."""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from confluence.config import StatsSettings
from confluence.risk.drawdown import EquityTracker
from confluence.strategy.models import TradeRecord

# Relative std below which a return series counts as constant
_ZERO_STD = 1e-12


@dataclass(frozen=True)
class PerformanceReport:
    """Summary of one backtest run. Percent fields are in percent units."""

    total_trades: int = 0
    win_rate: float = 0.0
    avg_profit: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    total_return: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    profit_factor: float = 0.0
    avg_hold_bars: float = 0.0
    trades_per_month: float = 0.0


def calculate_stats(
    trades: Sequence[TradeRecord],
    total_bars: int,
    settings: Optional[StatsSettings] = None,
) -> PerformanceReport:
    """Compute summary statistics from a list of closed backtest trades.

    Win rate counts trades with ``profit_pct > 0``; break-even trades are
    losses.  Equity compounds from 100, so ``total_return`` is the final
    equity minus 100.

    Returns an all-zero report for an empty trade list.
    """
    settings = settings or StatsSettings()
    if not trades:
        return PerformanceReport()

    profits = [t.profit_pct for t in trades]
    total = len(profits)
    winners = [p for p in profits if p > 0]
    losers = [p for p in profits if p <= 0]

    avg_profit = sum(profits) / total

    tracker = EquityTracker(100.0)
    for p in profits:
        tracker.apply_return(p)

    gross_profit = sum(abs(p) for p in winners)
    gross_loss = sum(abs(p) for p in losers)
    profit_factor = gross_profit / gross_loss if gross_loss > 0 else gross_profit

    hold = [t.hold_bars for t in trades]
    trades_per_month = (
        total / total_bars * settings.bars_per_month if total_bars > 0 else 0.0
    )

    return PerformanceReport(
        total_trades=total,
        win_rate=round(len(winners) / total * 100.0, 2),
        avg_profit=round(avg_profit, 2),
        avg_win=round(_mean(winners), 2),
        avg_loss=round(_mean(losers), 2),
        total_return=round(tracker.total_return_pct, 2),
        max_drawdown=round(tracker.max_drawdown_pct, 2),
        sharpe_ratio=round(_sharpe(profits, settings.sharpe_scale), 2),
        profit_factor=round(profit_factor, 2),
        avg_hold_bars=round(sum(hold) / total, 1),
        trades_per_month=round(trades_per_month, 1),
    )


# ── Helpers ──────────────────────────────────────────────────────────────


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _sharpe(profits: list[float], scale: float) -> float:
    """Scaled Sharpe ratio from per-trade percentage returns.

    Uses the population standard deviation (n).  Returns 0.0 when the
    series has zero variance, including the rounding residue left by
    identical non-representable returns such as 0.1.
    """
    n = len(profits)
    if n == 0:
        return 0.0
    mean = sum(profits) / n
    variance = sum((p - mean) ** 2 for p in profits) / n
    std = math.sqrt(variance)
    if std <= _ZERO_STD * max(1.0, abs(mean)):
        return 0.0
    return (mean / std) * scale
