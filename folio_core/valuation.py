"""
Valuation & series projection for the holdings view.

Combines holdings, live prices and historical bars (filtered to the display
date's trading session) into per-symbol daily change figures and chart-ready
series. Stateless: every call recomputes from its inputs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

import pandas as pd

from folio_core.bars import DailyBar, bars_from_frame, load_bars
from folio_core.calendar import TradingCalendar
from folio_core.ledger import HoldingsLedger

logger = logging.getLogger(__name__)

_HUNDREDTH = Decimal("0.01")


def format_percent(value: Decimal | float | None) -> str | None:
    """Fraction as a two-decimal percentage: 0.0123 -> '1.23%'. None stays None."""
    if value is None:
        return None
    pct = (Decimal(str(value)) * 100).quantize(_HUNDREDTH, rounding=ROUND_HALF_UP)
    return f"{pct}%"


@dataclass(frozen=True)
class HoldingDailyChange:
    """Intraday change for one displayed holding on the display date."""

    symbol: str
    display_date: date
    series: tuple[DailyBar, ...] = ()
    percent_change: Decimal | None = None

    @property
    def percent_label(self) -> str | None:
        return format_percent(self.percent_change)

    @property
    def is_gain(self) -> bool | None:
        """True if the series closed at or above where it opened; None if empty."""
        if not self.series:
            return None
        return self.series[-1].close >= self.series[0].close

    def to_frame(self) -> pd.DataFrame:
        """Series as a DataFrame indexed by datetime, for charting."""
        return load_bars(self.series)


@dataclass(frozen=True)
class Valuation:
    """Buying power plus holdings at latest prices. `missing` lists unpriced symbols."""

    buying_power: Decimal
    holdings_value: Decimal
    missing: frozenset[str] = field(default_factory=frozenset)

    @property
    def total(self) -> Decimal:
        return self.buying_power + self.holdings_value


def portfolio_value(ledger: HoldingsLedger, prices: Mapping[str, Decimal | None]) -> Valuation:
    """Value visible holdings at the given prices."""
    value = Decimal("0")
    missing: set[str] = set()
    for symbol in ledger.visible_symbols():
        price = prices.get(symbol)
        if price is None:
            missing.add(symbol)
            continue
        value += price * ledger.get(symbol)
    return Valuation(buying_power=ledger.buying_power, holdings_value=value, missing=frozenset(missing))


def percent_change(series: Sequence[DailyBar]) -> Decimal | None:
    """(last.close - first.close) / first.close, or None if undefined."""
    if not series:
        return None
    first = series[0].close
    if first == 0:
        return None
    return (series[-1].close - first) / first


class SeriesProjector:
    """Builds HoldingDailyChange per visible symbol using a TradingCalendar."""

    def __init__(self, calendar: TradingCalendar | None = None) -> None:
        self.calendar = calendar or TradingCalendar()

    def session_series(self, bars: pd.DataFrame | Iterable[DailyBar], display_date: date) -> tuple[DailyBar, ...]:
        """Bars whose date equals display_date, ascending."""
        df = load_bars(bars)
        if df.empty:
            return ()
        mask = df.index.date == display_date
        return bars_from_frame(df[mask])

    def project(
        self,
        symbols: Iterable[str],
        holdings: HoldingsLedger | Mapping[str, int],
        bars_by_symbol: Mapping[str, pd.DataFrame | Iterable[DailyBar]],
        now: date | datetime,
    ) -> dict[str, HoldingDailyChange]:
        """
        Map each displayed symbol with a positive quantity to its daily change.
        On a day the market is closed all day, every series is empty.
        """
        display_date = self.calendar.resolve_display_date(now)
        closed = self.calendar.is_market_closed_all_day(display_date)
        if closed:
            logger.info("Market closed all day on %s; no intraday series", display_date)

        out: dict[str, HoldingDailyChange] = {}
        for symbol in symbols:
            qty = holdings.get(symbol) or 0
            if qty <= 0:
                continue
            if closed or symbol not in bars_by_symbol:
                out[symbol] = HoldingDailyChange(symbol=symbol, display_date=display_date)
                continue
            series = self.session_series(bars_by_symbol[symbol], display_date)
            out[symbol] = HoldingDailyChange(
                symbol=symbol,
                display_date=display_date,
                series=series,
                percent_change=percent_change(series),
            )
        return out
