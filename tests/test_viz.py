"""
Smoke tests for plot_backtest.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from tradestrategy.backtester.engine import BacktestResult, StrategyBacktester  # noqa: E402
from tradestrategy.backtester.strategies import MovingAverageCrossover  # noqa: E402
from tradestrategy.viz import plot_backtest  # noqa: E402


def test_plot_backtest_returns_figure(up_down_quotes):
    result = StrategyBacktester(MovingAverageCrossover(2, 3, 100.0, 500.0), up_down_quotes).compute()
    fig = plot_backtest(result, title="MA 2/3")

    assert isinstance(fig, Figure)
    assert fig._suptitle.get_text() == "MA 2/3"
    assert len(fig.axes) == 2
    plt.close(fig)


def test_plot_without_trades():
    fig = plot_backtest(BacktestResult(strategy_name="idle"))
    assert fig.axes[0].texts[0].get_text() == "No trades"
    plt.close(fig)
