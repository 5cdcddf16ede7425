"""
Signal-generating strategies and their shared trade book.

Architecture
~~~~~~~~~~~~
Every strategy owns a ``TradeBook`` (composition, not inheritance).  The book
holds everything the strategies have in common:

- the current direction and the currently open ``TradeSituation``
- the append-only trade history
- the per-bar valuation series used for annualised volatility
- the open / flip / force-close mechanics and the risk aggregates

A strategy only contributes its indicator state and a direction signal.
One call to ``step(quote)`` is:

1. feed the close into the strategy's rolling statistics
2. mark the open position (may auto-close on take-profit)
3. open or flip on the strategy's signal
4. append one valuation point

The closed set of strategies is ``AnyStrategy``; ``Strategy`` is the
structural interface the backtester relies on.

Example
-------
>>> strategy = MovingAverageCrossover(short_len=25, long_len=100, amount=1e6, tp_bps=50)
>>> for quote in quotes:
...     strategy.step(quote)
>>> strategy.book.total_pnl()
"""

from __future__ import annotations

import enum
import logging
from typing import List, Optional, Protocol, Tuple, Union, runtime_checkable

import numpy as np

from tradestrategy.backtester.metrics import annualised_volatility, maximum_drawdown, total_pnl
from tradestrategy.backtester.models import ExitReason, Side, TradeIdSequence, TradeSituation
from tradestrategy.backtester.rolling import RollingWindow
from tradestrategy.configuration import BOLLINGER_LONG_WINDOW, PARABOLIC_SAR_WARM_UP
from tradestrategy.exceptions import ConfigurationError, PositionStateError
from tradestrategy.quotes import Quote

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------

def _require_window(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}.")
    return int(value)


def _require_positive(name: str, value: float) -> float:
    if not value > 0.0:
        raise ConfigurationError(f"{name} must be strictly positive, got {value!r}.")
    return float(value)


# ---------------------------------------------------------------------------
# Shared trade book
# ---------------------------------------------------------------------------

class TradeBook:
    """
    Position bookkeeping shared by every strategy.

    Parameters
    ----------
    amount : float
        Notional traded by the strategy (> 0).
    tp_bps : float
        Take-profit threshold, in basis points, given to every new trade (>= 0).
    id_sequence : TradeIdSequence | None
        Source of trade ids.  A fresh sequence starting at 0 when omitted.
    """

    def __init__(
        self,
        amount: float,
        tp_bps: float,
        id_sequence: Optional[TradeIdSequence] = None,
    ) -> None:
        self.amount = _require_positive("amount", amount)
        if not tp_bps >= 0.0:
            raise ConfigurationError(f"The take profit must be positive, got {tp_bps} bps.")
        self.tp_bps = float(tp_bps)
        self._ids = id_sequence if id_sequence is not None else TradeIdSequence()

        self.current_side: Side = Side.FLAT
        self.current_trade: Optional[TradeSituation] = None
        self.history: List[TradeSituation] = []
        self.valuations: List[float] = []
        self._closed_on_bar: Optional[TradeSituation] = None

    @property
    def has_open_position(self) -> bool:
        return self.current_trade is not None

    # ------------------------------------------------------------------ #
    #  Per-bar driving                                                    #
    # ------------------------------------------------------------------ #

    def advance(self, quote: Quote, signal: Side) -> bool:
        """
        Mark the open position, act on ``signal`` and record the bar's valuation.

        Returns
        -------
        bool
            ``True`` if a position was opened (or flipped) on this bar.
        """
        self._closed_on_bar = None

        if self.current_trade is not None and self.current_trade.update_on_order(quote):
            logger.debug(
                "Trade %d take-profit on %s at %.4f.",
                self.current_trade.trade_id, quote.date, quote.close,
            )
            self._closed_on_bar = self.current_trade
            self.current_trade = None

        opened = self._apply_signal(signal, quote)
        self._record_valuation(quote)
        return opened

    def _apply_signal(self, signal: Side, quote: Quote) -> bool:
        if signal == Side.FLAT:
            return False
        if self.current_trade is not None and self.current_side == signal:
            return False

        if self.current_trade is not None:
            self.current_trade.close(quote, ExitReason.SIGNAL_FLIP)
            self._closed_on_bar = self.current_trade
            logger.debug("Trade %d flipped on %s at %.4f.", self.current_trade.trade_id, quote.date, quote.close)

        trade = TradeSituation(self._ids.next_id(), signal, quote, self.tp_bps)
        self.current_side = signal
        self.current_trade = trade
        self.history.append(trade)
        logger.debug("Trade %d opened %s on %s at %.4f.", trade.trade_id, signal.name, quote.date, quote.close)
        return True

    def _record_valuation(self, quote: Quote) -> None:
        if self._closed_on_bar is not None:
            self.valuations.append(self._closed_on_bar.realized_pnl)
        elif self.current_trade is not None:
            self.valuations.append(self.current_trade.mark_to_market(quote))
        else:
            self.valuations.append(0.0)

    def force_close_position(self, quote: Quote) -> TradeSituation:
        """Close the open position at ``quote`` (end of data)."""
        if self.current_trade is None:
            raise PositionStateError("There is no open position to force close.")
        trade = self.current_trade
        trade.close(quote, ExitReason.END_OF_DATA)
        self.current_trade = None
        logger.debug("Trade %d force closed on %s at %.4f.", trade.trade_id, quote.date, quote.close)
        return trade

    # ------------------------------------------------------------------ #
    #  Aggregates                                                         #
    # ------------------------------------------------------------------ #

    def total_pnl(self) -> float:
        return total_pnl(self.history, self.amount)

    def maximum_drawdown(self) -> float:
        return maximum_drawdown(self.history)

    def strategy_volatility(self) -> float:
        return annualised_volatility(self.valuations)


# ---------------------------------------------------------------------------
# Moving-average crossover
# ---------------------------------------------------------------------------

class MovingAverageCrossover:
    """
    Long while the short moving average is above the long one, short while below.

    Parameters
    ----------
    short_len : int
        Short moving-average window (e.g. 25).
    long_len : int
        Long moving-average window (e.g. 100).
    amount : float
        Notional traded.
    tp_bps : float
        Take-profit in basis points.
    id_sequence : TradeIdSequence | None
        Shared trade-id source.
    """

    def __init__(
        self,
        short_len: int,
        long_len: int,
        amount: float,
        tp_bps: float,
        id_sequence: Optional[TradeIdSequence] = None,
    ) -> None:
        self.short_len = _require_window("short_len", short_len)
        self.long_len = _require_window("long_len", long_len)
        self.book = TradeBook(amount, tp_bps, id_sequence)
        self._short_window = RollingWindow(self.short_len)
        self._long_window = RollingWindow(self.long_len)

    @property
    def name(self) -> str:
        return f"MovingAverageCrossover({self.short_len}, {self.long_len})"

    @property
    def warm_up(self) -> int:
        return max(self.short_len, self.long_len)

    @property
    def short_mean(self) -> float:
        return self._short_window.mean()

    @property
    def long_mean(self) -> float:
        return self._long_window.mean()

    def step(self, quote: Quote) -> bool:
        self._short_window.put(quote.close)
        self._long_window.put(quote.close)
        return self.book.advance(quote, self._signal())

    def _signal(self) -> Side:
        if self._long_window.count < self.warm_up:
            return Side.FLAT
        short_mean, long_mean = self.short_mean, self.long_mean
        if short_mean > long_mean:
            return Side.LONG
        if short_mean < long_mean:
            return Side.SHORT
        return Side.FLAT


# ---------------------------------------------------------------------------
# Bollinger bands (mean reversion)
# ---------------------------------------------------------------------------

class BollingerBand:
    """
    Buy below the lower band, sell above the upper band.

    Bands are centred on the mean of the long (capped all-history) window and
    their width is driven by the short window's population volatility:

    .. code-block:: text

        upper = long_mean + upper_k * short_std
        lower = long_mean - lower_k * short_std

    Parameters
    ----------
    short_len : int
        Window of the volatility estimate (e.g. 25); also the warm-up.
    upper_k : float
        Multiplier of the upper band.
    lower_k : float
        Multiplier of the lower band.
    amount : float
        Notional traded.
    tp_bps : float
        Take-profit in basis points.
    long_len : int
        Cap of the long window.
    id_sequence : TradeIdSequence | None
        Shared trade-id source.
    """

    def __init__(
        self,
        short_len: int,
        upper_k: float,
        lower_k: float,
        amount: float,
        tp_bps: float,
        long_len: int = BOLLINGER_LONG_WINDOW,
        id_sequence: Optional[TradeIdSequence] = None,
    ) -> None:
        self.short_len = _require_window("short_len", short_len)
        self.long_len = _require_window("long_len", long_len)
        self.upper_k = float(upper_k)
        self.lower_k = float(lower_k)
        self.book = TradeBook(amount, tp_bps, id_sequence)
        self._short_window = RollingWindow(self.short_len)
        self._long_window = RollingWindow(self.long_len)
        self.short_std = 0.0
        self.long_mean = 0.0
        self.long_std = 0.0

    @property
    def name(self) -> str:
        return f"BollingerBand({self.short_len}, {self.upper_k:g}, {self.lower_k:g})"

    @property
    def warm_up(self) -> int:
        return self.short_len

    @property
    def bands(self) -> Tuple[float, float]:
        """Current ``(lower, upper)`` band levels."""
        return (
            self.long_mean - self.lower_k * self.short_std,
            self.long_mean + self.upper_k * self.short_std,
        )

    def step(self, quote: Quote) -> bool:
        self._short_window.put(quote.close)
        self._long_window.put(quote.close)

        history = self._long_window.values()
        self.short_std = self._short_window.population_std()
        self.long_mean = float(history.mean())
        self.long_std = float(history.std())

        return self.book.advance(quote, self._signal(quote))

    def _signal(self, quote: Quote) -> Side:
        if self._short_window.count < self.warm_up:
            return Side.FLAT
        lower, upper = self.bands
        if quote.close < lower:
            return Side.LONG
        if quote.close > upper:
            return Side.SHORT
        return Side.FLAT


# ---------------------------------------------------------------------------
# Parabolic SAR (trend following)
# ---------------------------------------------------------------------------

class ParabolicSAR:
    """
    Long while the SAR sits below the close, short while it sits above.

    Recurrence, one bar at a time:

    1. first bar:   ``SAR = close``, ``af = acc_init``
    2. second bar:  ``EP = close``, ``SAR = SAR' + af * (EP - SAR')``
    3. afterwards:  the trend going into the bar is *up* when the prior SAR
       was below the previous close, *down* otherwise.  If the new close is
       still on the trend's side of the prior SAR the EP extends to the new
       extreme; otherwise the trend reverses, ``EP = close`` and
       ``af = min(af + acc_step, acc_max)``.  Then
       ``SAR = SAR' + af * (EP - SAR')``.

    Parameters
    ----------
    acc_init : float
        Initial acceleration factor (e.g. 0.02).
    acc_max : float
        Cap of the acceleration factor (e.g. 0.2).
    acc_step : float
        Increment applied on every reversal (e.g. 0.02).
    amount : float
        Notional traded.
    tp_bps : float
        Take-profit in basis points.
    id_sequence : TradeIdSequence | None
        Shared trade-id source.
    """

    def __init__(
        self,
        acc_init: float,
        acc_max: float,
        acc_step: float,
        amount: float,
        tp_bps: float,
        id_sequence: Optional[TradeIdSequence] = None,
    ) -> None:
        self.acc_init = _require_positive("acc_init", acc_init)
        self.acc_step = _require_positive("acc_step", acc_step)
        if acc_init > acc_max:
            raise ConfigurationError(f"acc_init ({acc_init}) must not exceed acc_max ({acc_max}).")
        self.acc_max = float(acc_max)
        self.book = TradeBook(amount, tp_bps, id_sequence)

        self._sar_history = RollingWindow(2)
        self._closes = RollingWindow(2)
        self.extreme_point = 0.0
        self.acceleration_factor = self.acc_init
        self.reversals = 0

    @property
    def name(self) -> str:
        return f"ParabolicSAR({self.acc_init:g}, {self.acc_max:g}, {self.acc_step:g})"

    @property
    def warm_up(self) -> int:
        return PARABOLIC_SAR_WARM_UP

    @property
    def sar(self) -> float:
        return self._sar_history.last()

    def step(self, quote: Quote) -> bool:
        close = quote.close
        self._closes.put(close)
        self._sar_history.put(self._next_sar(close))
        return self.book.advance(quote, self._signal(close))

    def _next_sar(self, close: float) -> float:
        bars = self._closes.count
        if bars == 1:
            self.acceleration_factor = self.acc_init
            self.extreme_point = close
            return close

        prior_sar = self._sar_history.last()
        if bars == 2:
            self.extreme_point = close
            return prior_sar + self.acceleration_factor * (self.extreme_point - prior_sar)

        previous_close = self._closes.get_first_n_values(2)[0]
        if prior_sar < previous_close:
            continuing = prior_sar <= close
            extreme = max(self.extreme_point, close)
        else:
            continuing = prior_sar >= close
            extreme = min(self.extreme_point, close)

        if continuing:
            self.extreme_point = extreme
        else:
            self.extreme_point = close
            self.acceleration_factor = min(self.acceleration_factor + self.acc_step, self.acc_max)
            self.reversals += 1

        return prior_sar + self.acceleration_factor * (self.extreme_point - prior_sar)

    def _signal(self, close: float) -> Side:
        sar = self.sar
        if sar < close:
            return Side.LONG
        if sar > close:
            return Side.SHORT
        return Side.FLAT


# ---------------------------------------------------------------------------
# Closed variant set and structural interface
# ---------------------------------------------------------------------------

AnyStrategy = Union[MovingAverageCrossover, BollingerBand, ParabolicSAR]


@runtime_checkable
class Strategy(Protocol):
    """What the backtester needs from a strategy."""

    book: TradeBook

    @property
    def name(self) -> str: ...

    @property
    def warm_up(self) -> int: ...

    def step(self, quote: Quote) -> bool: ...


class StrategyKind(enum.Enum):
    """Tag of each strategy variant, as chosen by a caller."""
    MOVING_AVERAGE = "moving_average"
    BOLLINGER      = "bollinger"
    PARABOLIC_SAR  = "parabolic_sar"


_STRATEGY_CLASSES = {
    StrategyKind.MOVING_AVERAGE: MovingAverageCrossover,
    StrategyKind.BOLLINGER:      BollingerBand,
    StrategyKind.PARABOLIC_SAR:  ParabolicSAR,
}


def build_strategy(kind: Union[StrategyKind, str], **params) -> AnyStrategy:
    """
    Instantiate the strategy tagged ``kind`` with keyword ``params``.

    >>> build_strategy("bollinger", short_len=25, upper_k=2, lower_k=2, amount=1e6, tp_bps=50)
    """
    kind = StrategyKind(kind)
    return _STRATEGY_CLASSES[kind](**params)
