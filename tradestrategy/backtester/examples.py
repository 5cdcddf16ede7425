"""
Usage examples for ``tradestrategy.backtester``.

Run this file directly to execute all examples on synthetic data::

    python -m tradestrategy.backtester.examples

Each function is self-contained and demonstrates a different capability.
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np
import pandas as pd

from tradestrategy.backtester.engine import StrategyBacktester, run_backtests
from tradestrategy.backtester.models import TradeIdSequence
from tradestrategy.backtester.strategies import (
    AnyStrategy,
    BollingerBand,
    MovingAverageCrossover,
    ParabolicSAR,
    build_strategy,
)
from tradestrategy.quotes import Quote, quotes_from_frame


# ======================================================================== #
#  Synthetic data generator                                                #
# ======================================================================== #

def generate_synthetic_daily_quotes(
    n_days: int = 750,
    start_price: float = 100.0,
    daily_vol: float = 0.015,
    drift: float = 0.0002,
    seed: int = 42,
) -> List[Quote]:
    """
    Geometric random walk of business-day bars.

    Returns quotes built through ``quotes_from_frame`` so the example goes
    through the same boundary a real data source would.
    """
    rng = np.random.default_rng(seed)

    log_returns = rng.normal(drift, daily_vol, size=n_days)
    closes = start_price * np.exp(np.cumsum(log_returns))
    opens = np.concatenate(([start_price], closes[:-1]))
    spread = np.abs(rng.normal(0.0, daily_vol / 2, size=n_days)) * closes

    dates = pd.bdate_range("2019-02-04", periods=n_days)
    df = pd.DataFrame({
        "Date": dates,
        "Open": opens,
        "High": np.maximum(opens, closes) + spread,
        "Low": np.minimum(opens, closes) - spread,
        "Close": closes,
        "Volume": rng.integers(1_000_000, 5_000_000, size=n_days).astype(float),
    })
    return quotes_from_frame(df)


# ======================================================================== #
#  Example 1: single moving-average backtest                               #
# ======================================================================== #

def example_moving_average() -> None:
    """25/100 moving-average crossover with a 50 bps take-profit."""
    print("\n" + "=" * 70)
    print("  EXAMPLE 1: Moving-average crossover")
    print("=" * 70)

    quotes = generate_synthetic_daily_quotes()
    backtest = StrategyBacktester(
        MovingAverageCrossover(short_len=25, long_len=100, amount=1_000_000.0, tp_bps=50.0),
        quotes,
        progress_bar=True,
    )
    result = backtest.compute()
    result.summary()
    print(result.to_dataframe().head(10).to_string(index=False))


# ======================================================================== #
#  Example 2: the three strategies side by side                            #
# ======================================================================== #

def side_by_side_strategies(amount: float = 1_000_000.0, tp_bps: float = 50.0) -> List[AnyStrategy]:
    """One instance of each strategy, each numbering its trades from its own sequence."""
    return [
        MovingAverageCrossover(25, 100, amount, tp_bps, id_sequence=TradeIdSequence()),
        BollingerBand(25, 2.0, 2.0, amount, tp_bps, id_sequence=TradeIdSequence()),
        ParabolicSAR(0.02, 0.2, 0.02, amount, tp_bps, id_sequence=TradeIdSequence()),
    ]


def example_three_strategies() -> None:
    """MA, Bollinger and Parabolic SAR over the same quotes, run concurrently."""
    print("\n" + "=" * 70)
    print("  EXAMPLE 2: Three strategies, one quote set")
    print("=" * 70)

    quotes = generate_synthetic_daily_quotes(seed=7)
    results = run_backtests(quotes, side_by_side_strategies())
    table = pd.concat(
        [r.metrics.to_dataframe().assign(strategy=r.strategy_name) for r in results],
        ignore_index=True,
    )
    print(table[["strategy", "total_trades", "win_rate", "total_pnl",
                 "max_drawdown", "annualised_volatility"]].to_string(index=False))


# ======================================================================== #
#  Example 3: building strategies from user parameters                     #
# ======================================================================== #

def example_from_parameters() -> None:
    """What a UI layer does: tag + keyword parameters in, result out."""
    print("\n" + "=" * 70)
    print("  EXAMPLE 3: Strategy from user parameters")
    print("=" * 70)

    user_input = {
        "kind": "parabolic_sar",
        "acc_init": 0.02,
        "acc_max": 0.2,
        "acc_step": 0.02,
        "amount": 250_000.0,
        "tp_bps": 100.0,
    }
    kind = user_input.pop("kind")
    strategy = build_strategy(kind, **user_input)
    result = StrategyBacktester(strategy, generate_synthetic_daily_quotes(seed=11)).compute()
    result.summary()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    example_moving_average()
    example_three_strategies()
    example_from_parameters()
