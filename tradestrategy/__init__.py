from tradestrategy.quotes import (
    Quote,
    quotes_from_frame,
    quotes_to_frame,
    read_quotes_csv
)

from tradestrategy.backtester import (
    RollingWindow,
    Side,
    ExitReason,
    TradeIdSequence,
    TradeSituation,
    TradeBook,
    MovingAverageCrossover,
    BollingerBand,
    ParabolicSAR,
    StrategyKind,
    build_strategy,
    PerformanceMetrics,
    BacktestResult,
    StrategyBacktester,
    run_backtests
)

from tradestrategy.viz import (
    plot_backtest
)

from tradestrategy.exceptions import (
    ConfigurationError,
    PositionStateError,
    InsufficientDataError,
    BacktestStateError,
    ColumnNotPresent,
    InvalidQuoteData
)

from tradestrategy.configuration import (
    TRADING_DAYS_PER_YEAR,
    BPS_DIVISOR,
    BOLLINGER_LONG_WINDOW,
    QUOTE_COLUMNS
)

