"""
backtester — Daily-bar strategy simulation engine.

Architecture
~~~~~~~~~~~~
- **rolling**:      Fixed-capacity rolling window (sum, mean, population std, min, max)
- **models**:       Enums, trade-id sequence and the per-position lifecycle (TradeSituation)
- **strategies**:   Trade book plus the MA crossover, Bollinger and Parabolic SAR strategies
- **metrics**:      Total PnL, maximum drawdown, annualised volatility and the report
- **engine**:       Backtest driver and concurrent multi-strategy runner
- **examples**:     Ready-to-run usage examples

Quick start
~~~~~~~~~~~
>>> from tradestrategy.backtester import StrategyBacktester, MovingAverageCrossover
>>> backtest = StrategyBacktester(MovingAverageCrossover(25, 100, 1e6, 50), quotes)
>>> result = backtest.compute()
>>> result.summary()
"""

from tradestrategy.backtester.rolling import RollingWindow
from tradestrategy.backtester.models import (
    Side,
    ExitReason,
    TradeIdSequence,
    TradeSituation,
)
from tradestrategy.backtester.metrics import (
    PerformanceMetrics,
    compute_metrics,
    total_pnl,
    maximum_drawdown,
    annualised_volatility,
)
from tradestrategy.backtester.strategies import (
    TradeBook,
    MovingAverageCrossover,
    BollingerBand,
    ParabolicSAR,
    AnyStrategy,
    Strategy,
    StrategyKind,
    build_strategy,
)
from tradestrategy.backtester.engine import (
    BacktestResult,
    StrategyBacktester,
    run_backtests,
)

__all__ = [
    # Rolling statistics
    "RollingWindow",
    # Models
    "Side",
    "ExitReason",
    "TradeIdSequence",
    "TradeSituation",
    # Metrics
    "PerformanceMetrics",
    "compute_metrics",
    "total_pnl",
    "maximum_drawdown",
    "annualised_volatility",
    # Strategies
    "TradeBook",
    "MovingAverageCrossover",
    "BollingerBand",
    "ParabolicSAR",
    "AnyStrategy",
    "Strategy",
    "StrategyKind",
    "build_strategy",
    # Engine
    "BacktestResult",
    "StrategyBacktester",
    "run_backtests",
]
