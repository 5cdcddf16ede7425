"""
viz.py — plotting utilities (matplotlib)

Public API:
    plot_backtest

Design
------
• Top axis: realized return of every trade, one bar per trade at its close date.
• Bottom axis: cumulative PnL (``amount`` times the running sum of returns).
• Returns the Figure so callers can save it instead of showing it.
"""
from __future__ import annotations

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from tradestrategy.backtester.engine import BacktestResult

__all__ = ["plot_backtest"]


def plot_backtest(
    result: BacktestResult,
    *,
    title: Optional[str] = None,
    show: bool = False,
) -> Figure:
    """Per-trade returns and cumulative PnL of one backtest."""
    fig, (ax_trades, ax_equity) = plt.subplots(2, 1, sharex=True, figsize=(12, 7))
    fig.suptitle(title or result.strategy_name)

    if result.dates:
        returns = np.asarray(result.pnl_history, dtype=np.float64)
        colors = np.where(returns >= 0, "tab:green", "tab:red")
        ax_trades.bar(result.dates, returns, color=colors, width=1.0)
        ax_equity.plot(result.dates, result.metrics.cumulative_pnl, lw=1.2)
    else:
        ax_trades.text(0.5, 0.5, "No trades", ha="center", va="center", transform=ax_trades.transAxes)

    ax_trades.axhline(0.0, color="black", lw=0.6)
    ax_trades.set_ylabel("Trade return")
    ax_equity.axhline(0.0, color="black", lw=0.6)
    ax_equity.set_ylabel("Cumulative PnL")
    ax_equity.set_xlabel("Close date")
    fig.autofmt_xdate()

    if show:
        plt.show()
    return fig
