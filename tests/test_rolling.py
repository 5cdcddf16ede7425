"""
Tests for RollingWindow.

Categories:
1. Ordering of the circular buffer
2. Aggregates on full and under-filled windows
3. Construction errors
"""

import numpy as np
import pytest

from tradestrategy.backtester.rolling import RollingWindow
from tradestrategy.exceptions import ConfigurationError


# ============================================================================
# ORDERING
# ============================================================================

def test_keeps_last_n_values_in_insertion_order():
    window = RollingWindow(4)
    for v in range(1, 11):
        window.put(float(v))

    np.testing.assert_array_equal(window.get_first_n_values(4), [7.0, 8.0, 9.0, 10.0])
    assert window.last() == 10.0
    assert window.count == 10
    assert window.is_full


def test_exactly_capacity_puts():
    window = RollingWindow(3)
    for v in (5.0, 6.0, 7.0):
        window.put(v)

    np.testing.assert_array_equal(window.get_first_n_values(3), [5.0, 6.0, 7.0])


def test_first_n_values_returns_the_oldest():
    window = RollingWindow(4)
    for v in range(1, 7):
        window.put(float(v))

    # window holds 3, 4, 5, 6
    np.testing.assert_array_equal(window.get_first_n_values(2), [3.0, 4.0])


def test_first_n_values_is_a_copy():
    window = RollingWindow(2)
    window.put(1.0)
    window.put(2.0)
    values = window.get_first_n_values(2)
    values[0] = 99.0
    assert window.get_first_n_values(2)[0] == 1.0


def test_values_only_returns_inserted_slots():
    window = RollingWindow(5)
    window.put(4.0)
    window.put(8.0)

    np.testing.assert_array_equal(window.values(), [4.0, 8.0])
    assert len(window) == 2
    assert not window.is_full


def test_first_n_values_rejects_out_of_range():
    window = RollingWindow(3)
    with pytest.raises(ValueError):
        window.get_first_n_values(4)


# ============================================================================
# AGGREGATES
# ============================================================================

@pytest.mark.parametrize("value", [0.1, 3.3, 101.7, -2.5])
def test_mean_of_constant_window_is_exact(value):
    window = RollingWindow(7)
    for _ in range(7):
        window.put(value)

    assert window.mean() == value
    assert window.population_std() == 0.0


def test_population_std_divides_by_capacity():
    window = RollingWindow(8)
    for v in (2, 4, 4, 4, 5, 5, 7, 9):
        window.put(float(v))

    assert window.mean() == pytest.approx(5.0)
    assert window.population_std() == pytest.approx(2.0)
    assert window.sum() == pytest.approx(40.0)
    assert window.min() == 2.0
    assert window.max() == 9.0


def test_under_filled_window_counts_zeros():
    window = RollingWindow(4)
    window.put(4.0)
    window.put(8.0)

    assert window.sum() == 12.0
    assert window.mean() == 3.0
    assert window.min() == 0.0
    assert window.max() == 8.0


def test_clear_resets_everything():
    window = RollingWindow(3)
    for v in (1.0, 2.0, 3.0, 4.0):
        window.put(v)
    window.clear()

    assert window.count == 0
    assert window.sum() == 0.0
    window.put(5.0)
    np.testing.assert_array_equal(window.values(), [5.0])


# ============================================================================
# CONSTRUCTION
# ============================================================================

@pytest.mark.parametrize("capacity", [0, -3, 2.5])
def test_invalid_capacity(capacity):
    with pytest.raises(ConfigurationError):
        RollingWindow(capacity)
