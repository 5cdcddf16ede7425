"""
Backtest driver — runs one strategy over an ordered quote sequence.

Architecture
~~~~~~~~~~~~
``StrategyBacktester`` steps the strategy through every quote except the last,
then force-closes whatever is still open on the final quote so that the whole
trade history is realized before anything is reported.  The reporting series
(close dates, per-trade PnL) and the scalar aggregates (total PnL, maximum
drawdown, annualised volatility) are read from the strategy's trade book.

Strategy instances share no state, so several of them can be run over the
same quotes at once with ``run_backtests`` (one worker thread per strategy).

Usage
-----
>>> from tradestrategy.backtester import StrategyBacktester, MovingAverageCrossover
>>> backtest = StrategyBacktester(MovingAverageCrossover(25, 100, 1e6, 50), quotes)
>>> result = backtest.compute()
>>> print(result.metrics.summary())
"""

from __future__ import annotations

import datetime
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import pandas as pd
from tqdm import tqdm

from tradestrategy.backtester.metrics import PerformanceMetrics, compute_metrics
from tradestrategy.backtester.models import Side, TradeSituation
from tradestrategy.backtester.strategies import Strategy
from tradestrategy.exceptions import BacktestStateError, InsufficientDataError
from tradestrategy.quotes import Quote

logger = logging.getLogger(__name__)


# ======================================================================== #
#  Result container                                                        #
# ======================================================================== #

@dataclass(frozen=True)
class BacktestResult:
    """
    Everything a backtest hands over to the outside world.

    Attributes
    ----------
    strategy_name : str
    dates : list[datetime.date]
        Close date of every trade, in trade order.
    pnl_history : list[float]
        Realized return of every trade, in trade order.
    total_pnl : float
        ``amount * sum(pnl_history)``.
    max_drawdown : float
        Deepest single-position worst excursion (price units, >= 0).
    volatility : float
        Annualised volatility of the per-bar valuation series.
    trades : list[TradeSituation]
        The closed trades themselves.
    metrics : PerformanceMetrics
        Extended statistics.
    """
    strategy_name: str
    dates: List[datetime.date] = field(default_factory=list)
    pnl_history: List[float] = field(default_factory=list)
    total_pnl: float = 0.0
    max_drawdown: float = 0.0
    volatility: float = 0.0
    trades: List[TradeSituation] = field(default_factory=list)
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)

    def summary(self) -> str:
        """Print and return the performance summary."""
        s = f"{self.strategy_name}\n{self.metrics.summary()}"
        print(s)
        return s

    def to_dataframe(self) -> pd.DataFrame:
        """One row per trade, ready for an external writer."""
        if not self.trades:
            return pd.DataFrame()

        rows = []
        for t in self.trades:
            rows.append({
                "trade_id": t.trade_id,
                "side": "LONG" if t.side == Side.LONG else "SHORT",
                "entry_date": t.entry_quote.date,
                "exit_date": t.exit_quote.date,
                "entry_price": t.entry_price,
                "exit_price": t.exit_price,
                "pnl": t.realized_pnl,
                "max_drawdown": t.max_drawdown,
                "bars_in_trade": t.bars_in_trade,
                "exit_reason": t.exit_reason.value,
            })
        return pd.DataFrame(rows)


# ======================================================================== #
#  Backtester                                                              #
# ======================================================================== #

class StrategyBacktester:
    """
    Drive ``strategy`` over ``quotes`` and collect the results.

    Parameters
    ----------
    strategy : Strategy
        A freshly built strategy; it is consumed by one ``compute()``.
    quotes : sequence of Quote
        Daily bars, ascending by date, one per date.
    progress_bar : bool
        Show a ``tqdm`` progress bar during the loop.
    """

    def __init__(
        self,
        strategy: Strategy,
        quotes: Sequence[Quote],
        progress_bar: bool = False,
    ) -> None:
        self.strategy = strategy
        self.quotes = list(quotes)
        self.progress_bar = progress_bar
        self._result: Optional[BacktestResult] = None

    # ------------------------------------------------------------------ #
    #  Public API                                                         #
    # ------------------------------------------------------------------ #

    def compute(self) -> BacktestResult:
        """
        Simulate the strategy on every quote but the last, then force-close on the last.

        Raises
        ------
        InsufficientDataError
            No quotes, or too few for the strategy to leave its warm-up.
        BacktestStateError
            ``compute()`` was already called on this backtester.
        """
        if self._result is not None:
            raise BacktestStateError("This backtest has already been computed; build a new strategy to rerun it.")
        self._validate_quotes()

        n = len(self.quotes)
        logger.info("Backtesting %s over %d quotes (%s to %s).",
                    self.strategy.name, n, self.quotes[0].date, self.quotes[-1].date)

        iterator = tqdm(self.quotes[:-1], desc=self.strategy.name, disable=not self.progress_bar)
        for quote in iterator:
            self.strategy.step(quote)

        book = self.strategy.book
        if book.has_open_position:
            book.force_close_position(self.quotes[-1])

        self._result = BacktestResult(
            strategy_name=self.strategy.name,
            dates=self._collect_dates(book.history),
            pnl_history=[t.order_pnl for t in book.history],
            total_pnl=book.total_pnl(),
            max_drawdown=book.maximum_drawdown(),
            volatility=book.strategy_volatility(),
            trades=list(book.history),
            metrics=compute_metrics(book.history, book.amount, book.valuations),
        )
        logger.info("%s: %d trades, total PnL %.2f.",
                    self.strategy.name, len(book.history), self._result.total_pnl)
        return self._result

    @property
    def result(self) -> BacktestResult:
        if self._result is None:
            raise BacktestStateError("Call compute() before reading the backtest results.")
        return self._result

    def get_dates(self) -> List[datetime.date]:
        return list(self.result.dates)

    def get_pnl_history(self) -> List[float]:
        return list(self.result.pnl_history)

    def get_total_pnl(self) -> float:
        return self.result.total_pnl

    def get_maximum_drawdown(self) -> float:
        return self.result.max_drawdown

    def get_strategy_vol(self) -> float:
        return self.result.volatility

    # ------------------------------------------------------------------ #
    #  Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _validate_quotes(self) -> None:
        if not self.quotes:
            raise InsufficientDataError("No quotes to backtest on.")
        stepped = len(self.quotes) - 1
        if stepped < self.strategy.warm_up:
            raise InsufficientDataError(
                f"{self.strategy.name} needs at least {self.strategy.warm_up + 1} quotes, "
                f"got {len(self.quotes)}."
            )

    @staticmethod
    def _collect_dates(trades: Sequence[TradeSituation]) -> List[datetime.date]:
        return [t.exit_quote.date for t in trades]


# ======================================================================== #
#  Several strategies over the same quotes                                #
# ======================================================================== #

def run_backtests(
    quotes: Sequence[Quote],
    strategies: Sequence[Strategy],
    max_workers: Optional[int] = None,
) -> List[BacktestResult]:
    """
    Backtest independent strategies over the same quotes concurrently.

    Each strategy instance is confined to a single worker.  Results come back
    in the order of ``strategies``; the first failure is re-raised.
    """
    if len({id(s) for s in strategies}) != len(strategies):
        raise ValueError("Each strategy instance can only be backtested once per run.")

    quotes = list(quotes)
    with ThreadPoolExecutor(max_workers=max_workers or max(1, len(strategies))) as executor:
        futures = [
            executor.submit(StrategyBacktester(strategy, quotes).compute)
            for strategy in strategies
        ]
        return [future.result() for future in futures]
