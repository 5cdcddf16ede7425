"""
Shared fixtures for the tradestrategy test-suite.

Quotes are built from plain close sequences: open/high/low are set to the
close and the dates are consecutive calendar days starting 2020-01-01.
"""

import datetime

import pytest

from tradestrategy.quotes import Quote


START_DATE = datetime.date(2020, 1, 1)


def _make_quotes(closes, start=START_DATE):
    return [
        Quote(
            timestamp=start + datetime.timedelta(days=i),
            open=float(c),
            high=float(c),
            low=float(c),
            close=float(c),
            volume=1_000.0,
        )
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def make_quotes():
    """Factory: list of closes -> list of Quote."""
    return _make_quotes


@pytest.fixture
def quote():
    """Factory: single Quote with the given close on day ``day``."""
    def _quote(close, day=0):
        return _make_quotes([close], start=START_DATE + datetime.timedelta(days=day))[0]
    return _quote


@pytest.fixture
def up_down_quotes(make_quotes):
    """Five bars: up to 12 then back down to 10."""
    return make_quotes([10, 11, 12, 11, 10])
