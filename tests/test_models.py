"""
Tests for TradeSituation and TradeIdSequence.

Categories:
1. Take-profit auto-closing (long and short)
2. Worst-excursion tracking
3. Realized PnL formulas
4. Lifecycle errors
5. Id sequencing
"""

import pytest

from tradestrategy.backtester.models import ExitReason, Side, TradeIdSequence, TradeSituation
from tradestrategy.exceptions import ConfigurationError, PositionStateError


def _long(quote, price=100.0, tp_bps=500.0, trade_id=0):
    return TradeSituation(trade_id, Side.LONG, quote(price), tp_bps)


def _short(quote, price=100.0, tp_bps=500.0, trade_id=0):
    return TradeSituation(trade_id, Side.SHORT, quote(price), tp_bps)


# ============================================================================
# TAKE PROFIT
# ============================================================================

def test_long_closes_when_take_profit_is_reached(quote):
    trade = _long(quote)

    assert trade.update_on_order(quote(104.0, day=1)) is False
    assert not trade.is_closed

    assert trade.update_on_order(quote(106.0, day=2)) is True
    assert trade.is_closed
    assert trade.exit_reason is ExitReason.TAKE_PROFIT
    assert trade.exit_price == 106.0
    assert trade.realized_pnl == pytest.approx((106.0 - 100.0) / 100.0)


def test_long_take_profit_is_inclusive(quote):
    trade = _long(quote, tp_bps=0.0)
    assert trade.update_on_order(quote(100.0, day=1)) is True
    assert trade.realized_pnl == 0.0


def test_long_stays_open_below_threshold(quote):
    trade = _long(quote)
    for day, price in enumerate([101.0, 99.0, 104.9, 80.0, 104.99], start=1):
        assert trade.update_on_order(quote(price, day=day)) is False
    assert not trade.is_closed


def test_short_closes_strictly_below_threshold(quote):
    trade = _short(quote)

    # threshold is 95.0 and the comparison is strict
    assert trade.update_on_order(quote(95.0, day=1)) is False
    assert trade.update_on_order(quote(94.0, day=2)) is True
    assert trade.exit_reason is ExitReason.TAKE_PROFIT
    assert trade.realized_pnl == pytest.approx((100.0 - 94.0) / 94.0)


# ============================================================================
# WORST EXCURSION
# ============================================================================

def test_worst_excursion_is_running_low_water_mark_for_long(quote):
    trade = _long(quote, tp_bps=10_000.0)
    assert trade.order_pnl == 0.0

    for day, price in enumerate([98.0, 101.0, 97.0, 99.0], start=1):
        trade.update_on_order(quote(price, day=day))

    assert trade.max_drawdown == pytest.approx(-3.0)
    assert trade.order_pnl == pytest.approx(-3.0)
    assert trade.bars_in_trade == 4


def test_worst_excursion_for_short(quote):
    trade = _short(quote, tp_bps=10_000.0)
    trade.update_on_order(quote(102.5, day=1))
    trade.update_on_order(quote(101.0, day=2))
    assert trade.max_drawdown == pytest.approx(-2.5)


def test_favourable_moves_leave_excursion_at_zero(quote):
    trade = _long(quote, tp_bps=10_000.0)
    trade.update_on_order(quote(110.0, day=1))
    assert trade.max_drawdown == 0.0


# ============================================================================
# REALIZED PNL
# ============================================================================

def test_short_realized_pnl_uses_exit_price_as_denominator(quote):
    trade = _short(quote, tp_bps=10_000.0)
    trade.close(quote(80.0, day=1))
    assert trade.realized_pnl == pytest.approx(20.0 / 80.0)
    assert trade.order_pnl == pytest.approx(0.25)


def test_long_realized_pnl_uses_entry_price_as_denominator(quote):
    trade = _long(quote, price=12.0, tp_bps=500.0)
    trade.close(quote(10.0, day=1), ExitReason.END_OF_DATA)
    assert trade.realized_pnl == pytest.approx(-2.0 / 12.0)
    assert trade.exit_reason is ExitReason.END_OF_DATA


def test_close_does_not_touch_worst_excursion(quote):
    trade = _long(quote, tp_bps=10_000.0)
    trade.update_on_order(quote(99.0, day=1))
    trade.close(quote(90.0, day=2))
    assert trade.max_drawdown == pytest.approx(-1.0)


def test_mark_to_market(quote):
    trade = _long(quote, tp_bps=10_000.0)
    assert trade.mark_to_market(quote(110.0, day=1)) == pytest.approx(0.1)
    assert not trade.is_closed


# ============================================================================
# LIFECYCLE ERRORS
# ============================================================================

@pytest.mark.parametrize("tp_bps", [-1.0, float("nan")])
def test_negative_or_undefined_take_profit_is_rejected(quote, tp_bps):
    with pytest.raises(ConfigurationError):
        _long(quote, tp_bps=tp_bps)


def test_flat_side_is_rejected(quote):
    with pytest.raises(ConfigurationError):
        TradeSituation(0, Side.FLAT, quote(100.0), 10.0)


def test_realized_pnl_of_open_trade_fails_loudly(quote):
    trade = _long(quote)
    with pytest.raises(PositionStateError):
        _ = trade.realized_pnl
    with pytest.raises(PositionStateError):
        _ = trade.exit_price


def test_closed_trade_is_frozen(quote):
    trade = _long(quote)
    trade.close(quote(101.0, day=1))

    with pytest.raises(PositionStateError):
        trade.close(quote(102.0, day=2))
    with pytest.raises(PositionStateError):
        trade.update_on_order(quote(102.0, day=2))
    with pytest.raises(PositionStateError):
        trade.open(quote(102.0, day=2))
    assert trade.is_closed
    assert trade.exit_price == 101.0


# ============================================================================
# IDS
# ============================================================================

def test_id_sequence_is_monotonic_and_independent():
    first, second = TradeIdSequence(), TradeIdSequence()
    assert [first.next_id() for _ in range(3)] == [0, 1, 2]
    assert second.next_id() == 0
    assert first.next_id() == 3
