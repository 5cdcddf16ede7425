"""
Strategy-level risk statistics and the post-run performance report.

Every strategy gets the same three aggregates from its trade book:

* **total PnL**           ``amount * sum(order_pnl)`` over the trade history
* **maximum drawdown**    negative of the single deepest worst excursion
  ever sustained by one position (price units, >= 0)
* **annualised volatility** ``sqrt(252) * std(ddof=1)`` of the per-bar
  valuation series (realized return on a closing bar, mark-to-market
  return while a position is open)

The population standard deviation of ``RollingWindow`` (divide by N) is an
indicator input; the sample standard deviation here (divide by N - 1) is a
reporting figure.  They are intentionally separate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from tradestrategy.backtester.models import Side, TradeSituation
from tradestrategy.configuration import TRADING_DAYS_PER_YEAR


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

def total_pnl(trades: Sequence[TradeSituation], amount: float) -> float:
    """``amount`` times the sum of every trade's ``order_pnl``."""
    return float(sum(t.order_pnl for t in trades) * amount)


def maximum_drawdown(trades: Sequence[TradeSituation]) -> float:
    """Deepest single-position worst excursion, as a positive number (0.0 with no trades)."""
    if not trades:
        return 0.0
    return max(0.0, -min(t.max_drawdown for t in trades))


def annualised_volatility(
    valuations: Sequence[float],
    annualisation_factor: float = TRADING_DAYS_PER_YEAR,
) -> float:
    """
    Annualised sample standard deviation of a per-bar valuation series.

    Fewer than two observations have no sample deviation: 0.0 is returned.
    """
    if len(valuations) < 2:
        return 0.0
    arr = np.asarray(valuations, dtype=np.float64)
    return float(np.sqrt(annualisation_factor) * np.std(arr, ddof=1))


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PerformanceMetrics:
    """
    Summary of one backtest run.

    Returns are per-trade fractional returns (``0.01`` = 1 %); ``total_pnl``
    is in the strategy's currency (``amount`` times the summed returns).

    Attributes
    ----------
    total_trades : int
    winning_trades : int
    losing_trades : int
    win_rate : float
        ``winning / total`` (0-1 scale).
    long_trades : int
    short_trades : int
    avg_trade_return : float
    best_trade_return : float
    worst_trade_return : float
    total_pnl : float
    max_drawdown : float
    annualised_volatility : float
    exit_reason_counts : Dict[str, int]
    cumulative_pnl : np.ndarray
        Running ``amount * sum(returns)`` after each trade.
    """
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    long_trades: int = 0
    short_trades: int = 0
    avg_trade_return: float = 0.0
    best_trade_return: float = 0.0
    worst_trade_return: float = 0.0
    total_pnl: float = 0.0
    max_drawdown: float = 0.0
    annualised_volatility: float = 0.0
    exit_reason_counts: Dict[str, int] = field(default_factory=dict)
    cumulative_pnl: np.ndarray = field(default_factory=lambda: np.array([]))

    def summary(self) -> str:
        """Return a formatted multi-line summary string."""
        lines = [
            "=" * 60,
            "  STRATEGY BACKTEST REPORT",
            "=" * 60,
            f"  Total Trades          : {self.total_trades}",
            f"  Winning Trades        : {self.winning_trades}",
            f"  Losing Trades         : {self.losing_trades}",
            f"  Win Rate              : {self.win_rate:.2%}",
            f"  Long / Short          : {self.long_trades} / {self.short_trades}",
            "-" * 60,
            f"  Avg Trade Return      : {self.avg_trade_return:>12.4%}",
            f"  Best Trade Return     : {self.best_trade_return:>12.4%}",
            f"  Worst Trade Return    : {self.worst_trade_return:>12.4%}",
            "-" * 60,
            f"  Total PnL             : {self.total_pnl:>12.2f}",
            f"  Max Drawdown (price)  : {self.max_drawdown:>12.4f}",
            f"  Volatility (ann.)     : {self.annualised_volatility:>12.4f}",
            "-" * 60,
            "  Exit Reasons:",
        ]
        for reason, count in sorted(self.exit_reason_counts.items()):
            lines.append(f"    {reason:<24s}: {count}")
        lines.append("=" * 60)
        return "\n".join(lines)

    def to_dataframe(self) -> pd.DataFrame:
        """Single-row DataFrame for easy export / concatenation."""
        d = {
            name: getattr(self, name)
            for name in self.__dataclass_fields__
            if name not in ("cumulative_pnl", "exit_reason_counts")
        }
        d.update({f"exit_{k}": v for k, v in self.exit_reason_counts.items()})
        return pd.DataFrame([d])


def compute_metrics(
    trades: List[TradeSituation],
    amount: float,
    valuations: Sequence[float] = (),
    annualisation_factor: float = TRADING_DAYS_PER_YEAR,
) -> PerformanceMetrics:
    """
    Compute ``PerformanceMetrics`` from a fully closed trade history.

    Parameters
    ----------
    trades : list[TradeSituation]
        Chronologically ordered, closed trades.
    amount : float
        Notional the strategy trades with.
    valuations : sequence of float
        Per-bar valuation series recorded by the strategy.
    annualisation_factor : float
        Trading days per year.

    Returns
    -------
    PerformanceMetrics
    """
    volatility = annualised_volatility(valuations, annualisation_factor)
    if not trades:
        return PerformanceMetrics(annualised_volatility=volatility)

    n = len(trades)
    returns = np.array([t.realized_pnl for t in trades], dtype=np.float64)

    winning = int((returns > 0).sum())
    losing = int((returns < 0).sum())
    long_count = sum(1 for t in trades if t.side == Side.LONG)

    exit_counts: Dict[str, int] = {}
    for t in trades:
        key = t.exit_reason.value
        exit_counts[key] = exit_counts.get(key, 0) + 1

    return PerformanceMetrics(
        total_trades=n,
        winning_trades=winning,
        losing_trades=losing,
        win_rate=winning / n,
        long_trades=long_count,
        short_trades=n - long_count,
        avg_trade_return=float(returns.mean()),
        best_trade_return=float(returns.max()),
        worst_trade_return=float(returns.min()),
        total_pnl=total_pnl(trades, amount),
        max_drawdown=maximum_drawdown(trades),
        annualised_volatility=volatility,
        exit_reason_counts=exit_counts,
        cumulative_pnl=np.cumsum(returns) * amount,
    )
