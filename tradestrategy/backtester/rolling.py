"""
Fixed-capacity rolling window of floats.

``RollingWindow`` is the statistics primitive every strategy is built on: a
circular buffer where ``put`` overwrites the oldest slot in O(1) and the
aggregates (sum, mean, population standard deviation, min, max) scan the whole
buffer in O(capacity).

Slots that have not been written yet read as ``0.0`` and take part in every
aggregate.  Callers gate on ``count`` / ``is_full`` before trusting them.
"""

from __future__ import annotations

import numpy as np

from tradestrategy.exceptions import ConfigurationError


class RollingWindow:
    """
    Circular overwrite buffer of ``capacity`` doubles.

    Parameters
    ----------
    capacity : int
        Number of slots (> 0).

    Examples
    --------
    >>> w = RollingWindow(3)
    >>> for v in (1.0, 2.0, 3.0, 4.0):
    ...     w.put(v)
    >>> w.get_first_n_values(3)
    array([2., 3., 4.])
    >>> w.mean()
    3.0
    """

    __slots__ = ("_array", "_cursor", "_count")

    def __init__(self, capacity: int) -> None:
        if not isinstance(capacity, (int, np.integer)) or capacity <= 0:
            raise ConfigurationError(f"Rolling window capacity must be a positive integer, got {capacity!r}.")
        self._array = np.zeros(int(capacity), dtype=np.float64)
        self._cursor = 0
        self._count = 0

    # ------------------------------------------------------------------ #
    #  Mutation                                                           #
    # ------------------------------------------------------------------ #

    def put(self, value: float) -> None:
        """Overwrite the oldest slot with ``value``."""
        self._array[self._cursor] = value
        self._cursor += 1
        if self._cursor == self._array.shape[0]:
            self._cursor = 0
        self._count += 1

    def clear(self) -> None:
        """Zero every slot and rewind the cursor."""
        self._array[:] = 0.0
        self._cursor = 0
        self._count = 0

    # ------------------------------------------------------------------ #
    #  Introspection                                                      #
    # ------------------------------------------------------------------ #

    @property
    def capacity(self) -> int:
        return int(self._array.shape[0])

    @property
    def count(self) -> int:
        """Total number of ``put`` calls since construction (or last ``clear``)."""
        return self._count

    @property
    def is_full(self) -> bool:
        return self._count >= self.capacity

    def __len__(self) -> int:
        return min(self._count, self.capacity)

    def get(self, index: int) -> float:
        """Value stored in absolute slot ``index`` (not chronological)."""
        return float(self._array[index])

    def get_first_n_values(self, n: int) -> np.ndarray:
        """
        The ``n`` oldest slots in chronological order (a copy).

        Once the window is full, ``get_first_n_values(capacity)`` is exactly
        the last ``capacity`` inserted values in insertion order.
        """
        if n < 0 or n > self.capacity:
            raise ValueError(f"n must be between 0 and {self.capacity}, got {n}.")
        ordered = np.concatenate((self._array[self._cursor:], self._array[:self._cursor]))
        return ordered[:n].copy()

    def values(self) -> np.ndarray:
        """Only the values actually inserted (at most ``capacity``), oldest first."""
        filled = len(self)
        return self.get_first_n_values(self.capacity)[self.capacity - filled:]

    def last(self) -> float:
        """Most recently inserted value."""
        return float(self._array[self._cursor - 1])

    # ------------------------------------------------------------------ #
    #  Aggregates (all O(capacity))                                       #
    # ------------------------------------------------------------------ #

    def sum(self) -> float:
        return float(self._array.sum())

    def mean(self) -> float:
        """``sum / capacity``; computed around the first slot so constant windows stay exact."""
        shift = self._array[0]
        return float(shift + (self._array - shift).sum() / self.capacity)

    def population_std(self) -> float:
        """Square root of the mean squared deviation from ``mean()`` (divides by capacity)."""
        deviations = self._array - self.mean()
        return float(np.sqrt(np.dot(deviations, deviations) / self.capacity))

    def min(self) -> float:
        return float(self._array.min())

    def max(self) -> float:
        return float(self._array.max())

    def __repr__(self) -> str:
        return f"RollingWindow(capacity={self.capacity}, count={self._count})"
