"""Strategy registry — maps preset names to strategy configurations.

Used by the comparison suite and the CLI.  Every preset shares the
default exit rules: 3 % stop-loss, 5 % take-profit, 48-bar time exit.
"""

from confluence.strategy.models import (
    BollingerCondition,
    CciBounce,
    CciThreshold,
    Conditions,
    ExitRules,
    RsiCondition,
    StrategyConfig,
)


DEFAULT_EXIT_RULES = ExitRules(
    stop_loss_pct=3.0,
    take_profit_pct=5.0,
    max_hold_bars=48,
)

BASE_CCI = CciBounce()
BASE_RSI = RsiCondition(threshold=25.0)
BASE_BOLLINGER = BollingerCondition(
    period=21,
    multiplier=2.0,
    use_higher_timeframe=True,
    higher_timeframe_multiplier=2.25,
)
PLAIN_BOLLINGER = BollingerCondition(period=21, multiplier=2.0)


def _preset(required: int, **conditions) -> StrategyConfig:
    return StrategyConfig(
        conditions=Conditions(**conditions),
        exit_rules=DEFAULT_EXIT_RULES,
        required_signals=required,
    )


_ALL_THREE = {"cci": BASE_CCI, "rsi": BASE_RSI, "bollinger": BASE_BOLLINGER}


STRATEGY_REGISTRY: dict[str, StrategyConfig] = {
    # Signal quorum
    "all_three": _preset(3, **_ALL_THREE),
    "two_of_three": _preset(2, **_ALL_THREE),
    # Single indicators
    "cci_bounce": _preset(1, cci=BASE_CCI),
    "cci_threshold": _preset(1, cci=CciThreshold(value=-100.0)),
    "rsi_20": _preset(1, rsi=RsiCondition(threshold=20.0)),
    "rsi_25": _preset(1, rsi=RsiCondition(threshold=25.0)),
    "rsi_30": _preset(1, rsi=RsiCondition(threshold=30.0)),
    "bb_20_2.0": _preset(1, bollinger=BollingerCondition(period=20, multiplier=2.0)),
    "bb_21_2.0": _preset(1, bollinger=BollingerCondition(period=21, multiplier=2.0)),
    "bb_21_2.25": _preset(1, bollinger=BollingerCondition(period=21, multiplier=2.25)),
    # Pairs
    "cci_rsi": _preset(2, cci=BASE_CCI, rsi=BASE_RSI),
    "cci_bb": _preset(2, cci=BASE_CCI, bollinger=PLAIN_BOLLINGER),
    "rsi_bb": _preset(2, rsi=BASE_RSI, bollinger=PLAIN_BOLLINGER),
}

# Presets ranked against each other in the suite summary
COMBINATION_PRESETS = ("all_three", "two_of_three", "cci_rsi", "cci_bb", "rsi_bb")


def get_strategy(name: str) -> StrategyConfig:
    """Look up a preset strategy by registry key.

    Raises ``KeyError`` if the strategy name is not registered.
    """
    if name not in STRATEGY_REGISTRY:
        raise KeyError(
            f"Unknown strategy '{name}'. "
            f"Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    return STRATEGY_REGISTRY[name]
