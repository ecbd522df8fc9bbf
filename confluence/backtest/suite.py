"""Strategy comparison suite.

Runs registry presets against one engine (sharing its indicator memo
table), ranks the combination presets and derives a signal-count
recommendation.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from confluence.backtest.engine import BacktestEngine, BacktestResult
from confluence.strategy.registry import (
    COMBINATION_PRESETS,
    STRATEGY_REGISTRY,
    get_strategy,
)

logger = logging.getLogger("confluence.backtest.suite")


@dataclass(frozen=True)
class SuiteResult:
    """Results of every preset in the suite, in run order."""

    results: dict[str, BacktestResult]

    def _ranked(self, key) -> Optional[str]:
        names = [n for n in COMBINATION_PRESETS if n in self.results]
        if not names:
            return None
        # Earlier preset wins ties
        best = names[0]
        for name in names[1:]:
            if key(self.results[name]) > key(self.results[best]):
                best = name
        return best

    @property
    def best_by_win_rate(self) -> Optional[str]:
        return self._ranked(lambda r: r.report.win_rate)

    @property
    def best_by_sharpe(self) -> Optional[str]:
        return self._ranked(lambda r: r.report.sharpe_ratio)

    @property
    def best_by_return(self) -> Optional[str]:
        return self._ranked(lambda r: r.report.total_return)

    def recommendation(self) -> str:
        """Pick between the three-signal and two-signal quorum.

        Three signals when they win more than 55 % over more than 10
        trades; two signals when they add over 50 % more trades while
        still winning more than half; otherwise no fixed advice.
        """
        three = self.results.get("all_three")
        two = self.results.get("two_of_three")
        if three is None or two is None:
            return "Run both signal-count presets for a recommendation"

        r3, r2 = three.report, two.report
        extra_trades = r2.total_trades - r3.total_trades
        if r3.win_rate > 55 and r3.total_trades > 10:
            return "Use all three signals (higher win rate and stability)"
        if extra_trades > r3.total_trades * 0.5 and r2.win_rate > 50:
            return "Use two of three signals (balanced entry frequency and win rate)"
        return "Adjust the signal count to market conditions"


def run_suite(
    engine: BacktestEngine, names: Optional[Iterable[str]] = None,
) -> SuiteResult:
    """Run the named presets (all registered presets by default)."""
    names = list(names) if names is not None else list(STRATEGY_REGISTRY)
    results: dict[str, BacktestResult] = {}
    for name in names:
        logger.info("Running preset '%s'", name)
        results[name] = engine.run(get_strategy(name))
    return SuiteResult(results=results)
