"""
Daily OHLCV quotes and the adapters that bring them into the engine.

The engine itself only ever sees an ordered ``list[Quote]``.  Everything that
comes from the outside world (a pandas / polars DataFrame, a daily CSV export)
is normalised here: columns checked, dates parsed, rows sorted ascending and
duplicate dates dropped.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd
import polars as pl

from tradestrategy.configuration import CSV_COLUMN_MAP, QUOTE_COLUMNS, QUOTE_DATE_FORMAT
from tradestrategy.exceptions import ColumnNotPresent, InvalidQuoteData

logger = logging.getLogger(__name__)

FrameLike = Union[pd.DataFrame, pl.DataFrame]


@dataclass(frozen=True, slots=True)
class Quote:
    """
    One daily bar.

    Two quotes are equal (and hash equal) when they share the same
    ``timestamp``; prices and volume do not take part in the comparison.

    Attributes
    ----------
    timestamp : datetime.date
        Trading day of the bar.
    open, high, low, close : float
        Prices of the bar.  Only ``close`` is used by the strategies.
    volume : float
        Traded volume.
    """
    timestamp: datetime.date
    open: float = field(default=0.0, compare=False)
    high: float = field(default=0.0, compare=False)
    low: float = field(default=0.0, compare=False)
    close: float = field(default=0.0, compare=False)
    volume: float = field(default=0.0, compare=False)

    @property
    def date(self) -> datetime.date:
        """Date component of the timestamp (timestamps may carry a time)."""
        if isinstance(self.timestamp, datetime.datetime):
            return self.timestamp.date()
        return self.timestamp


def _normalise_frame(df: FrameLike) -> pl.DataFrame:
    """Return a polars frame with typed ``QUOTE_COLUMNS`` and a ``pl.Date`` Date column."""
    if isinstance(df, pd.DataFrame):
        df = pl.from_pandas(df)
    elif not isinstance(df, pl.DataFrame):
        raise ValueError("Attention, pass quotes as a Pandas or a Polars DataFrame.")

    missing = [c for c in QUOTE_COLUMNS if c not in df.columns]
    if missing:
        raise ColumnNotPresent(f"Quote DataFrame is missing required columns: {missing}")

    date_dtype = df.schema["Date"]
    if date_dtype == pl.Utf8:
        date_expr = pl.col("Date").str.strip_chars().str.strptime(pl.Date, QUOTE_DATE_FORMAT, strict=True)
    elif date_dtype == pl.Datetime:
        date_expr = pl.col("Date").dt.date()
    else:
        date_expr = pl.col("Date").cast(pl.Date)

    frame = df.select(
        date_expr.alias("Date"),
        pl.col(["Open", "High", "Low", "Close", "Volume"]).cast(pl.Float64).fill_nan(None),
    )

    nulls = {col: n for col, n in frame.null_count().row(0, named=True).items() if n}
    if nulls:
        raise InvalidQuoteData(f"Quote DataFrame has missing values (column: count): {nulls}")
    return frame


def quotes_from_frame(df: FrameLike) -> List[Quote]:
    """
    Convert a DataFrame of daily bars into an ascending, de-duplicated quote list.

    :param df: pandas or polars DataFrame with columns Date, Open, High, Low, Close, Volume
    :return: quotes sorted by date, one per date (first occurrence wins)
    :raises ColumnNotPresent: a required column is missing
    :raises InvalidQuoteData: a date, price or volume is missing
    """
    frame = _normalise_frame(df).sort("Date", maintain_order=True)

    deduped = frame.unique(subset=["Date"], keep="first", maintain_order=True)
    n_dropped = frame.height - deduped.height
    if n_dropped:
        logger.warning("Dropped %d quote(s) with a duplicated date.", n_dropped)

    return [
        Quote(
            timestamp=row["Date"],
            open=row["Open"],
            high=row["High"],
            low=row["Low"],
            close=row["Close"],
            volume=row["Volume"],
        )
        for row in deduped.iter_rows(named=True)
    ]


def read_quotes_csv(
    path: Union[str, Path],
    start: Optional[datetime.date] = None,
    end: Optional[datetime.date] = None,
    separator: str = ",",
) -> List[Quote]:
    """
    Read a daily OHLCV CSV export and return the quotes between ``start`` and ``end``.

    Both the ``timestamp,open,high,low,close,volume`` layout (newest row first)
    and the ``Date,Open,High,Low,Close,Volume`` layout are accepted.  The date
    range is inclusive on both ends; ``None`` leaves that end open.
    """
    df = pl.read_csv(path, has_header=True, separator=separator)
    df.columns = [col.strip() for col in df.columns]

    if set(CSV_COLUMN_MAP).issubset(df.columns):
        df = df.rename(CSV_COLUMN_MAP)

    frame = _normalise_frame(df)
    if start is not None:
        frame = frame.filter(pl.col("Date") >= pl.lit(start))
    if end is not None:
        frame = frame.filter(pl.col("Date") <= pl.lit(end))

    quotes = quotes_from_frame(frame)
    logger.info("Read %d quotes from %s.", len(quotes), path)
    return quotes


def quotes_to_frame(quotes: Sequence[Quote]) -> pd.DataFrame:
    """Tabular form of a quote list, in ``QUOTE_COLUMNS`` order."""
    return pd.DataFrame(
        {
            "Date":   [q.date for q in quotes],
            "Open":   [q.open for q in quotes],
            "High":   [q.high for q in quotes],
            "Low":    [q.low for q in quotes],
            "Close":  [q.close for q in quotes],
            "Volume": [q.volume for q in quotes],
        },
        columns=QUOTE_COLUMNS,
    )
