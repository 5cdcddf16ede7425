"""
Enums, id sequencing and the per-position lifecycle tracker.

``TradeSituation`` is the only stateful object here: it is created in the
*open* state, updated once per bar while open, and closed exactly once
(take-profit breach, signal flip, or end of data).  Once closed it is never
mutated again.
"""

from __future__ import annotations

import enum
import itertools
from dataclasses import dataclass, field
from typing import Optional

from tradestrategy.configuration import BPS_DIVISOR
from tradestrategy.exceptions import ConfigurationError, PositionStateError
from tradestrategy.quotes import Quote


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Side(enum.IntEnum):
    """Trade direction."""
    SHORT = -1
    FLAT  = 0
    LONG  = 1


class ExitReason(enum.Enum):
    """Why a position was closed."""
    TAKE_PROFIT = "take_profit"
    SIGNAL_FLIP = "signal_flip"
    END_OF_DATA = "end_of_data"


# ---------------------------------------------------------------------------
# Id sequence
# ---------------------------------------------------------------------------

class TradeIdSequence:
    """
    Monotonic, never-reused trade ids for one backtest run.

    Share a single instance between strategies to number their trades from
    a common counter; give each strategy its own to number them separately.
    """

    __slots__ = ("_counter",)

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)

    def next_id(self) -> int:
        return next(self._counter)


# ---------------------------------------------------------------------------
# Position lifecycle
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class TradeSituation:
    """
    One directional position, from entry to exit.

    Parameters
    ----------
    trade_id : int
        Unique id drawn from a ``TradeIdSequence``.
    side : Side
        ``Side.LONG`` or ``Side.SHORT``.
    entry_quote : Quote
        Bar on which the position was opened; fills at its close.
    tp_bps : float
        Take-profit threshold in basis points of the entry price (>= 0).

    Notes
    -----
    * ``max_drawdown`` is the running low-water mark of the paper PnL in
      price units, so it is always <= 0.
    * Realized return is ``(exit - entry) / entry`` for a long and
      ``(entry - exit) / exit`` for a short.
    """
    trade_id: int
    side: Side
    entry_quote: Quote
    tp_bps: float
    exit_quote: Optional[Quote] = field(default=None, init=False)
    exit_reason: Optional[ExitReason] = field(default=None, init=False)
    max_drawdown: float = field(default=0.0, init=False)
    bars_in_trade: int = field(default=0, init=False)
    _is_closed: bool = field(default=True, init=False, repr=False)
    _realized_pnl: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.side not in (Side.LONG, Side.SHORT):
            raise ConfigurationError(f"A trade must be LONG or SHORT, got {self.side!r}.")
        if not self.tp_bps >= 0.0:
            raise ConfigurationError(f"The take profit must be positive, got {self.tp_bps} bps.")
        self.open(self.entry_quote)

    # ------------------------------------------------------------------ #
    #  Lifecycle                                                          #
    # ------------------------------------------------------------------ #

    def open(self, quote: Quote) -> None:
        if self.exit_quote is not None:
            raise PositionStateError(f"Trade {self.trade_id} is closed and cannot be reopened.")
        self.entry_quote = quote
        self._is_closed = False

    def update_on_order(self, quote: Quote) -> bool:
        """
        Mark the open position against ``quote``.

        Refreshes the worst excursion and closes the position on this bar if
        the take-profit level is reached.

        Returns
        -------
        bool
            ``True`` if the position was closed by this call.
        """
        if self._is_closed:
            raise PositionStateError(f"Trade {self.trade_id} is already closed.")

        self.bars_in_trade += 1
        entry = self.entry_price
        price = quote.close

        excursion = price - entry if self.is_long else entry - price
        if excursion < self.max_drawdown:
            self.max_drawdown = excursion

        threshold = self.tp_bps / BPS_DIVISOR
        if self.is_long and price >= entry * (1.0 + threshold):
            self.close(quote, ExitReason.TAKE_PROFIT)
            return True
        if not self.is_long and price < entry * (1.0 - threshold):
            self.close(quote, ExitReason.TAKE_PROFIT)
            return True
        return False

    def close(self, quote: Quote, reason: ExitReason = ExitReason.SIGNAL_FLIP) -> None:
        """Close the position at ``quote.close`` and freeze the realized return."""
        if self._is_closed:
            raise PositionStateError(f"Trade {self.trade_id} is already closed.")
        self.exit_quote = quote
        self.exit_reason = reason
        self._is_closed = True
        self._realized_pnl = self._return_at(quote.close)

    # ------------------------------------------------------------------ #
    #  Accessors                                                          #
    # ------------------------------------------------------------------ #

    @property
    def is_long(self) -> bool:
        return self.side == Side.LONG

    @property
    def is_closed(self) -> bool:
        return self._is_closed

    @property
    def entry_price(self) -> float:
        return self.entry_quote.close

    @property
    def exit_price(self) -> float:
        if self.exit_quote is None:
            raise PositionStateError(f"Trade {self.trade_id} has no exit yet.")
        return self.exit_quote.close

    @property
    def realized_pnl(self) -> float:
        """Realized return; only defined once the trade is closed."""
        if not self._is_closed:
            raise PositionStateError(
                f"Trade {self.trade_id} is still open: close it before reading its realized PnL."
            )
        return self._realized_pnl

    @property
    def order_pnl(self) -> float:
        """Realized return once closed, the worst excursion while open."""
        return self._realized_pnl if self._is_closed else self.max_drawdown

    def mark_to_market(self, quote: Quote) -> float:
        """Unrealized return of the open position at ``quote.close``."""
        return self._return_at(quote.close)

    def _return_at(self, price: float) -> float:
        entry = self.entry_price
        if self.is_long:
            return (price - entry) / entry
        return (entry - price) / price
