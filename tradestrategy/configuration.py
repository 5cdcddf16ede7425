# Constants shared by the strategy engine and the quote boundary adapters.
#
#     - Annualisation: daily bars, so volatility is scaled by the square root of
#     the number of trading days in a year.
#
#     - Basis points: take-profit thresholds are expressed in bps relative to the
#     entry price (1 bp = 1 / 10_000).
#
#     - Bollinger long window: the "all history" window of the Bollinger strategy
#     is capped so memory stays bounded on very long series.
#
#     - Quote columns: the layout expected from any quote source handed to the
#     engine (pandas or polars DataFrame, or a daily CSV export).


TRADING_DAYS_PER_YEAR  = 252
BPS_DIVISOR            = 10_000.0
BOLLINGER_LONG_WINDOW  = 10_000
PARABOLIC_SAR_WARM_UP  = 2
QUOTE_DATE_FORMAT      = "%Y-%m-%d"
QUOTE_COLUMNS          = ["Date", "Open", "High", "Low", "Close", "Volume"]
CSV_COLUMN_MAP         = {"timestamp": "Date",
                          "open":      "Open",
                          "high":      "High",
                          "low":       "Low",
                          "close":     "Close",
                          "volume":    "Volume"}
