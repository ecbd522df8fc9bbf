"""Rule-based exits — pure math, no I/O.

Stop-loss is checked before take-profit, take-profit before the time
exit.  The first rule that matches wins.
"""

from typing import Optional

from confluence.strategy.models import ExitReason, ExitRules


def profit_pct(entry_price: float, price: float) -> float:
    """Percentage move from *entry_price* to *price* for a long position."""
    return (price - entry_price) / entry_price * 100.0


def check_exit(
    rules: ExitRules, profit: float, bars_held: int,
) -> Optional[ExitReason]:
    """Return the exit reason triggered by *profit* / *bars_held*, or ``None``.

    Args:
        rules: Configured exit thresholds; ``None`` fields are disabled.
        profit: Unrealised profit in percent at the current close.
        bars_held: Bars since the entry bar.
    """
    if rules.stop_loss_pct is not None and profit <= -rules.stop_loss_pct:
        return ExitReason.STOP_LOSS
    if rules.take_profit_pct is not None and profit >= rules.take_profit_pct:
        return ExitReason.TAKE_PROFIT
    if rules.max_hold_bars is not None and bars_held >= rules.max_hold_bars:
        return ExitReason.TIME_EXIT
    return None
