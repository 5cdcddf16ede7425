"""
Tests for Quote and the DataFrame / CSV adapters.

Categories:
1. Quote identity
2. DataFrame normalisation (sorting, duplicates, date parsing, columns)
3. CSV reading with a date range
"""

import datetime
import logging

import pandas as pd
import polars as pl
import pytest

from tradestrategy.configuration import QUOTE_COLUMNS
from tradestrategy.exceptions import ColumnNotPresent, InvalidQuoteData
from tradestrategy.quotes import Quote, quotes_from_frame, quotes_to_frame, read_quotes_csv


D = datetime.date


# ============================================================================
# QUOTE
# ============================================================================

def test_quotes_compare_by_timestamp_only():
    a = Quote(D(2020, 1, 2), close=10.0)
    b = Quote(D(2020, 1, 2), close=99.0, volume=5.0)
    c = Quote(D(2020, 1, 3), close=10.0)

    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert len({a, b, c}) == 2


def test_date_drops_the_time_component():
    q = Quote(datetime.datetime(2020, 1, 2, 16, 30), close=1.0)
    assert q.date == D(2020, 1, 2)


# ============================================================================
# DATAFRAME
# ============================================================================

def _pandas_bars(dates, closes):
    return pd.DataFrame({
        "Date": pd.to_datetime(dates),
        "Open": closes,
        "High": closes,
        "Low": closes,
        "Close": closes,
        "Volume": [100] * len(closes),
    })


def test_frame_is_sorted_and_deduplicated(caplog):
    df = _pandas_bars(["2020-01-03", "2020-01-01", "2020-01-03", "2020-01-02"], [3.0, 1.0, 30.0, 2.0])

    with caplog.at_level(logging.WARNING, logger="tradestrategy.quotes"):
        quotes = quotes_from_frame(df)

    assert [q.date for q in quotes] == [D(2020, 1, 1), D(2020, 1, 2), D(2020, 1, 3)]
    assert [q.close for q in quotes] == [1.0, 2.0, 3.0]
    assert isinstance(quotes[0].volume, float)
    assert "duplicated date" in caplog.text


def test_polars_frame_with_string_dates():
    df = pl.DataFrame({
        "Date": [" 2021-06-02", "2021-06-01 "],
        "Open": [1, 2],
        "High": [1, 2],
        "Low": [1, 2],
        "Close": [1, 2],
        "Volume": [10, 20],
    })
    quotes = quotes_from_frame(df)

    assert [q.timestamp for q in quotes] == [D(2021, 6, 1), D(2021, 6, 2)]
    assert quotes[0].close == 2.0


def test_missing_column_is_reported():
    df = pl.DataFrame({"Date": ["2021-06-01"], "Close": [1.0]})
    with pytest.raises(ColumnNotPresent):
        quotes_from_frame(df)


@pytest.mark.parametrize("column", ["Close", "Open", "Volume"])
def test_missing_values_are_rejected_at_the_boundary(column):
    df = _pandas_bars(
        ["2020-01-01", "2020-01-02", "2020-01-03", "2020-01-06"],
        [10.0, 11.0, 12.0, 11.0],
    )
    df[column] = df[column].astype(float)
    df.loc[2, column] = None

    with pytest.raises(InvalidQuoteData, match=column):
        quotes_from_frame(df)


def test_null_close_in_polars_frame_is_rejected():
    df = pl.DataFrame({
        "Date": ["2021-06-01", "2021-06-02"],
        "Open": [1.0, 2.0],
        "High": [1.0, 2.0],
        "Low": [1.0, 2.0],
        "Close": [1.0, None],
        "Volume": [10.0, 20.0],
    })
    with pytest.raises(InvalidQuoteData):
        quotes_from_frame(df)


def test_non_frame_input_is_rejected():
    with pytest.raises(ValueError):
        quotes_from_frame([{"Date": "2021-06-01"}])


def test_quotes_to_frame(make_quotes):
    df = quotes_to_frame(make_quotes([1, 2, 3]))
    assert list(df.columns) == QUOTE_COLUMNS
    assert df["Close"].tolist() == [1.0, 2.0, 3.0]
    assert df["Date"].iloc[0] == D(2020, 1, 1)


# ============================================================================
# CSV
# ============================================================================

DAILY_CSV = """timestamp,open,high,low,close,volume
2020-01-07,15.0,15.5,14.5,15.2,1200
2020-01-06,14.0,14.5,13.5,14.1,1100
2020-01-03,13.0,13.5,12.5,13.3,1000
2020-01-02,12.0,12.5,11.5,12.4,900
2020-01-01,11.0,11.5,10.5,11.1,800
"""


def test_read_csv_newest_first_with_range(tmp_path):
    path = tmp_path / "daily_ABC.csv"
    path.write_text(DAILY_CSV)

    quotes = read_quotes_csv(path, start=D(2020, 1, 2), end=D(2020, 1, 6))

    assert [q.date for q in quotes] == [D(2020, 1, 2), D(2020, 1, 3), D(2020, 1, 6)]
    assert [q.close for q in quotes] == [12.4, 13.3, 14.1]
    assert quotes[-1].high == 14.5


def test_read_csv_without_range_and_capitalised_header(tmp_path):
    path = tmp_path / "bars.csv"
    path.write_text(
        "Date,Open,High,Low,Close,Volume\n"
        "2020-01-01,1,1,1,1,1\n"
        "2020-01-02,2,2,2,2,2\n"
    )
    quotes = read_quotes_csv(str(path))
    assert [q.close for q in quotes] == [1.0, 2.0]
