"""
Historical daily bars: the immutable DailyBar record and normalization of
raw feed output into an ascending, close-only DataFrame.

Feeds return bars in any order (often newest first) and with mixed-case or
aliased column names; everything downstream sees the normalized form.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

import pandas as pd

from folio_core.trade import as_decimal

# Column aliases seen in quote/bar feeds; lowercase for normalization
_ALIASES = {
    "c": "close",
    "last": "close",
    "date": "datetime",
    "timestamp": "datetime",
    "time": "datetime",
}


@dataclass(frozen=True)
class DailyBar:
    """One bar of a symbol's series. Close is kept as Decimal."""

    timestamp: datetime
    close: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.timestamp, datetime):
            object.__setattr__(self, "timestamp", pd.Timestamp(self.timestamp).to_pydatetime())
        if not isinstance(self.close, Decimal):
            object.__setattr__(self, "close", as_decimal(self.close))


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Ensure columns are lowercase; map common aliases to datetime/close."""
    out = df.copy()
    out.columns = [str(c).lower().strip() for c in out.columns]
    renames: dict[str, str] = {}
    taken = set(out.columns)
    for alias, target in _ALIASES.items():
        # First alias present wins; later ones for the same target are left alone
        if alias in out.columns and target not in taken:
            renames[alias] = target
            taken.add(target)
    out = out.rename(columns=renames)
    return out


def load_bars(raw: pd.DataFrame | Iterable[DailyBar | Mapping[str, Any]]) -> pd.DataFrame:
    """
    Normalize raw bars into a DataFrame with an ascending DatetimeIndex named
    'datetime' and a single 'close' column.

    Parameters
    ----------
    raw : DataFrame or iterable of DailyBar / dict
        A DataFrame with a datetime index or a date-like column, or records
        such as ``{"date": "2024-01-05 09:30:00", "close": 101.2}``.

    Returns
    -------
    pd.DataFrame
        Empty (with the same shape) when there are no bars.
    """
    if isinstance(raw, pd.DataFrame):
        df = _normalize_columns(raw)
    else:
        rows = [
            {"datetime": b.timestamp, "close": b.close} if isinstance(b, DailyBar) else dict(b)
            for b in raw
        ]
        df = _normalize_columns(pd.DataFrame(rows))
    if df.empty or "close" not in df.columns:
        empty = pd.DataFrame({"close": pd.Series(dtype=object)}, index=pd.DatetimeIndex([], name="datetime"))
        return empty
    if "datetime" in df.columns:
        df["datetime"] = pd.to_datetime(df["datetime"])
        df = df.set_index("datetime")
    elif not isinstance(df.index, pd.DatetimeIndex):
        df.index = pd.to_datetime(df.index)
    df = df.sort_index(kind="stable")
    df.index.name = "datetime"
    df = df[["close"]].dropna(subset=["close"]).copy()
    df["close"] = df["close"].map(as_decimal)
    finite = df["close"].map(lambda c: c.is_finite()).astype(bool)
    return df.loc[finite]


def bars_from_frame(df: pd.DataFrame) -> tuple[DailyBar, ...]:
    """Rows of a normalized frame as DailyBar records, in index order."""
    return tuple(
        DailyBar(timestamp=ts.to_pydatetime(), close=close)
        for ts, close in zip(df.index, df["close"])
    )
