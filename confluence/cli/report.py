"""CLI report — formats backtest results for the console."""

from collections.abc import Sequence
from datetime import datetime, timezone

from confluence.backtest.engine import BacktestResult
from confluence.backtest.suite import SuiteResult
from confluence.strategy.models import TradeRecord

_RULE = "─" * 70


def _date(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def format_report(name: str, result: BacktestResult) -> str:
    """Format one run's performance report."""
    r = result.report
    lines = [
        f"▶ {name}:",
        f"  Trades:          {r.total_trades}",
        f"  Win rate:        {r.win_rate:.2f}%",
        f"  Avg profit:      {r.avg_profit:.2f}%",
        f"  Avg win / loss:  {r.avg_win:.2f}% / {r.avg_loss:.2f}%",
        f"  Total return:    {r.total_return:.2f}%",
        f"  Max drawdown:    {r.max_drawdown:.2f}%",
        f"  Sharpe ratio:    {r.sharpe_ratio:.2f}",
        f"  Profit factor:   {r.profit_factor:.2f}",
        f"  Avg hold (bars): {r.avg_hold_bars:.1f}",
        f"  Trades / month:  {r.trades_per_month:.1f}",
    ]
    return "\n".join(lines)


def format_trades(trades: Sequence[TradeRecord], limit: int = 5) -> str:
    """Format the first *limit* trades."""
    if not trades:
        return "  (no trades)"
    lines: list[str] = []
    for n, t in enumerate(trades[:limit], start=1):
        lines.extend([
            f"Trade #{n}:",
            f"  Entry: {_date(t.entry_timestamp)} | price ${t.entry_price:,.2f}",
            f"  Exit:  {_date(t.exit_timestamp)} | price ${t.exit_price:,.2f}",
            f"  Profit: {t.profit_pct:.2f}% | held {t.hold_bars} bars"
            f" | reason {t.exit_reason.value}",
        ])
    return "\n".join(lines)


def format_suite(suite: SuiteResult, symbol: str = "") -> str:
    """Format every suite result followed by the summary and recommendation."""
    header = f"CCI + RSI + Bollinger MTF backtest {symbol}".rstrip()
    lines = ["=" * 70, header, "=" * 70]

    for name, result in suite.results.items():
        lines.append("")
        lines.append(format_report(name, result))

    lines.extend(["", _RULE, "[ Summary ]", _RULE])
    for label, best, attr, unit in (
        ("Best win rate", suite.best_by_win_rate, "win_rate", "%"),
        ("Best Sharpe", suite.best_by_sharpe, "sharpe_ratio", ""),
        ("Best return", suite.best_by_return, "total_return", "%"),
    ):
        if best is None:
            continue
        value = getattr(suite.results[best].report, attr)
        lines.append(f"  {label}: {best} ({value:.2f}{unit})")
    lines.append(f"  Recommendation: {suite.recommendation()}")

    sample = suite.results.get("all_three")
    if sample is not None and sample.trades:
        lines.extend(["", _RULE, "[ Sample trades (all_three) ]", _RULE])
        lines.append(format_trades(sample.trades))

    return "\n".join(lines)
