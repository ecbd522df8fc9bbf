"""Confluence — CLI entry point.

Loads a candle file and runs either the preset comparison suite or a
single strategy assembled from command-line flags.
"""

import argparse
import logging
import sys
from typing import Optional

from confluence.backtest.engine import BacktestEngine
from confluence.backtest.suite import run_suite
from confluence.cli.report import format_report, format_suite, format_trades
from confluence.config import load_config
from confluence.data.loader import load_candles
from confluence.strategy.models import (
    BollingerCondition,
    CciBounce,
    CciThreshold,
    Conditions,
    ExitRules,
    HigherTimeframeMode,
    RsiCondition,
    StrategyConfig,
)

logger = logging.getLogger("confluence")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Confluence candle backtester")
    parser.add_argument("--data", help="Candle file (.csv or .parquet); default DATA_PATH")
    parser.add_argument("--env", help="Path to a .env file")
    parser.add_argument(
        "--mode",
        choices=["suite", "single"],
        default="suite",
        help="Run all presets or one strategy built from flags (default: suite)",
    )

    entry = parser.add_argument_group("single-strategy entry conditions")
    entry.add_argument("--cci", choices=["bounce", "threshold"])
    entry.add_argument("--cci-threshold", type=float, default=-100.0)
    entry.add_argument("--rsi", type=float, help="RSI oversold threshold")
    entry.add_argument("--bb-period", type=int, help="Bollinger period (enables the condition)")
    entry.add_argument("--bb-mult", type=float, default=2.0)
    entry.add_argument("--htf", action="store_true", help="Compute the higher-timeframe band")
    entry.add_argument("--htf-mult", type=float, default=2.25)
    entry.add_argument(
        "--htf-mode",
        choices=[m.value for m in HigherTimeframeMode],
        default=HigherTimeframeMode.IGNORE.value,
    )
    entry.add_argument("--required", type=int, default=1, help="Signals needed to enter")

    exits = parser.add_argument_group("single-strategy exits")
    exits.add_argument("--stop-loss", type=float, default=3.0)
    exits.add_argument("--take-profit", type=float, default=5.0)
    exits.add_argument("--max-hold", type=int, default=48)
    return parser


def strategy_from_args(args: argparse.Namespace) -> StrategyConfig:
    """Assemble a ``StrategyConfig`` from parsed CLI flags."""
    cci = None
    if args.cci == "bounce":
        cci = CciBounce()
    elif args.cci == "threshold":
        cci = CciThreshold(value=args.cci_threshold)

    rsi = RsiCondition(threshold=args.rsi) if args.rsi is not None else None

    bollinger = None
    if args.bb_period is not None:
        bollinger = BollingerCondition(
            period=args.bb_period,
            multiplier=args.bb_mult,
            use_higher_timeframe=args.htf,
            higher_timeframe_multiplier=args.htf_mult,
            higher_timeframe_mode=HigherTimeframeMode(args.htf_mode),
        )

    return StrategyConfig(
        conditions=Conditions(cci=cci, rsi=rsi, bollinger=bollinger),
        exit_rules=ExitRules(
            stop_loss_pct=args.stop_loss,
            take_profit_pct=args.take_profit,
            max_hold_bars=args.max_hold,
        ),
        required_signals=args.required,
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Parse CLI arguments, run the backtest and print the report."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.env)
    except ValueError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("Invalid configuration: %s", exc)
        return 2

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    path = args.data or config.data_path
    try:
        candles = load_candles(path)
    except (OSError, ValueError) as exc:
        logger.error("Cannot load candles from %s: %s", path, exc)
        return 2

    if not candles:
        logger.error("No candle data in %s", path)
        return 2

    engine = BacktestEngine(candles, config)

    if args.mode == "single":
        strategy = strategy_from_args(args)
        result = engine.run(strategy)
        print(format_report("custom strategy", result))
        print(format_trades(result.trades))
    else:
        print(format_suite(run_suite(engine), config.symbol))
    return 0


if __name__ == "__main__":
    sys.exit(main())
