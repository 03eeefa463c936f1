"""
Historical OHLCV bar model and conversions.

Bars are supplied by an external historical-data provider already sorted
ascending by date with no duplicate dates.  Nothing here re-sorts or
de-duplicates; an unordered series is caller error.

Classes:
    HistoricalBar: One immutable daily OHLCV bar.

Functions:
    bars_from_frame: Build bars from a pandas DataFrame.
    bars_to_frame: Convert bars back to a DataFrame indexed by date.
    close_prices: Extract a float close-price array from any supported series.
    volumes: Extract traded volumes when the series carries them.
    last_date: Date of the final observation, when the series carries dates.

Example:
    >>> bars = bars_from_frame(pd.read_csv("aapl.csv", parse_dates=["date"]))
    >>> closes = close_prices(bars)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

_OHLCV_COLUMNS = ["open", "high", "low", "close", "volume"]


@dataclass(frozen=True)
class HistoricalBar:
    """Single daily OHLCV bar.

    Attributes:
        date: Trading date.
        open: Opening price.
        high: Session high.
        low: Session low.
        close: Closing price.
        volume: Traded volume.
    """

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


# Anything the estimators and generators accept as "a price series"
PriceSeries = Union[
    Sequence[HistoricalBar],
    Sequence[float],
    np.ndarray,
    pd.Series,
    pd.DataFrame,
]


def _to_date(value: Any) -> date:
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def bars_from_frame(frame: pd.DataFrame) -> List[HistoricalBar]:
    """Build a list of bars from a DataFrame.

    Column names are matched case-insensitively.  Dates come from a
    ``date`` column when present, otherwise from the index.  Missing
    open/high/low default to the close, missing volume to 0.

    Args:
        frame: DataFrame with at least a ``close`` column.

    Returns:
        Bars in the frame's row order.

    Raises:
        ValueError: If the frame has no close column.
    """
    if frame.empty:
        return []

    df = frame.rename(columns={c: str(c).strip().lower() for c in frame.columns})
    if "close" not in df.columns:
        raise ValueError("frame must contain a 'close' column")

    dates = df["date"] if "date" in df.columns else pd.Series(df.index, index=df.index)
    close = df["close"].astype(float)

    bars: List[HistoricalBar] = []
    for i, c in enumerate(close.to_numpy()):
        row = df.iloc[i]
        bars.append(
            HistoricalBar(
                date=_to_date(dates.iloc[i]),
                open=float(row["open"]) if "open" in df.columns else float(c),
                high=float(row["high"]) if "high" in df.columns else float(c),
                low=float(row["low"]) if "low" in df.columns else float(c),
                close=float(c),
                volume=float(row["volume"]) if "volume" in df.columns else 0.0,
            )
        )
    return bars


def bars_to_frame(bars: Sequence[HistoricalBar]) -> pd.DataFrame:
    """Convert bars to a DataFrame with a DatetimeIndex named ``date``."""
    if not bars:
        return pd.DataFrame(columns=_OHLCV_COLUMNS)
    df = pd.DataFrame(
        [[b.open, b.high, b.low, b.close, b.volume] for b in bars],
        columns=_OHLCV_COLUMNS,
        index=pd.DatetimeIndex([pd.Timestamp(b.date) for b in bars], name="date"),
    )
    return df


def close_prices(series: PriceSeries) -> np.ndarray:
    """Return the close prices of ``series`` as a 1-D float array.

    Accepts a sequence of ``HistoricalBar``, a sequence / array of floats,
    a pandas Series, or a DataFrame with a ``close`` column.
    """
    if isinstance(series, pd.DataFrame):
        cols = {str(c).lower(): c for c in series.columns}
        if "close" not in cols:
            raise ValueError("DataFrame series must contain a 'close' column")
        return series[cols["close"]].to_numpy(dtype=float)
    if isinstance(series, pd.Series):
        return series.to_numpy(dtype=float)
    if isinstance(series, np.ndarray):
        return series.astype(float).ravel()
    if len(series) == 0:
        return np.empty(0, dtype=float)
    if isinstance(series[0], HistoricalBar):
        return np.fromiter((b.close for b in series), dtype=float, count=len(series))
    return np.asarray(series, dtype=float).ravel()


def volumes(series: PriceSeries) -> Optional[np.ndarray]:
    """Return traded volumes as a float array, or None if the series has none.

    Only bar sequences and DataFrames with a ``volume`` column carry volume.
    """
    if isinstance(series, pd.DataFrame):
        cols = {str(c).lower(): c for c in series.columns}
        if "volume" not in cols:
            return None
        return series[cols["volume"]].to_numpy(dtype=float)
    if isinstance(series, (pd.Series, np.ndarray)) or len(series) == 0:
        return None
    if isinstance(series[0], HistoricalBar):
        return np.fromiter((b.volume for b in series), dtype=float, count=len(series))
    return None


def last_date(series: PriceSeries) -> Optional[date]:
    """Return the date of the final observation, or None if undated."""
    if isinstance(series, (pd.Series, pd.DataFrame)):
        if len(series) == 0:
            return None
        if isinstance(series, pd.DataFrame):
            cols = {str(c).lower(): c for c in series.columns}
            if "date" in cols:
                return _to_date(series[cols["date"]].iloc[-1])
        if isinstance(series.index, pd.DatetimeIndex):
            return _to_date(series.index[-1])
        return None
    if isinstance(series, np.ndarray) or len(series) == 0:
        return None
    tail = series[-1]
    if isinstance(tail, HistoricalBar):
        return tail.date
    return None
