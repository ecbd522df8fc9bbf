"""Compounded equity and drawdown tracking — pure math, no I/O.

Walks per-trade percentage returns over a starting equity, tracking the
running peak and the deepest drawdown seen.
"""


class EquityTracker:
    """Tracks compounded equity, its peak, and the maximum drawdown.

    Args:
        initial_equity: Starting equity (100 reads as "percent of capital").
    """

    def __init__(self, initial_equity: float = 100.0) -> None:
        if initial_equity <= 0:
            raise ValueError(
                f"initial_equity must be positive, got {initial_equity}"
            )
        self._initial_equity: float = initial_equity
        self._peak_equity: float = initial_equity
        self._current_equity: float = initial_equity
        self._max_drawdown_pct: float = 0.0

    # ── Mutation ─────────────────────────────────────────────────────────

    def apply_return(self, pct: float) -> float:
        """Compound a trade return of *pct* percent and return the new equity."""
        self._current_equity *= 1.0 + pct / 100.0
        if self._current_equity > self._peak_equity:
            self._peak_equity = self._current_equity
        dd = self.drawdown_pct
        if dd > self._max_drawdown_pct:
            self._max_drawdown_pct = dd
        return self._current_equity

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def peak_equity(self) -> float:
        """Highest equity recorded."""
        return self._peak_equity

    @property
    def current_equity(self) -> float:
        """Most recently recorded equity."""
        return self._current_equity

    @property
    def total_return_pct(self) -> float:
        """Gain over the initial equity, in percent of it."""
        return (
            (self._current_equity - self._initial_equity) / self._initial_equity
        ) * 100.0

    @property
    def drawdown_pct(self) -> float:
        """Current drawdown as a percentage of peak equity."""
        if self._peak_equity == 0:
            return 0.0
        return (
            (self._peak_equity - self._current_equity) / self._peak_equity
        ) * 100.0

    @property
    def max_drawdown_pct(self) -> float:
        """Deepest drawdown seen so far, in percent."""
        return self._max_drawdown_pct
