"""
Exceptions thrown by tradestrategy package that are specific to this package only
"""


class ConfigurationError(ValueError):
    """Raised when a strategy or trade is built with invalid parameters"""
    pass

class PositionStateError(RuntimeError):
    """Raised when a position is used outside its lifecycle (e.g. realized PnL of an open trade)"""
    pass

class InsufficientDataError(ValueError):
    """Raised when the quote sequence is empty or too short to ever produce a signal"""
    pass

class BacktestStateError(RuntimeError):
    """Raised when a backtest is queried before compute() or computed twice"""
    pass

class ColumnNotPresent(KeyError):
    """Raised when a column searched is not present in a dataframe"""
    pass

class InvalidQuoteData(ValueError):
    """Raised when a quote frame holds missing prices or volumes"""
    pass
