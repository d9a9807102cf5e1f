"""
Trading calendar: which day a "today" view shows, and whether the market is
closed all day.

Holiday data comes from a swappable HolidaySource. The default follows US
public holidays through pandas' federal holiday calendar; an exchange's own
session calendar can be plugged in via exchange_calendars.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date, datetime, timedelta

import exchange_calendars as xcals
import pandas as pd
from pandas.tseries.holiday import AbstractHolidayCalendar, USFederalHolidayCalendar

logger = logging.getLogger(__name__)

SATURDAY = 5
SUNDAY = 6


def _as_date(value: date | datetime | pd.Timestamp) -> date:
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    return value


class HolidaySource(ABC):
    """Supplies recognized holiday dates for one market."""

    @abstractmethod
    def is_holiday(self, day: date) -> bool:
        """True if the market does not open at all on this (week)day."""
        ...


class StaticHolidaySource(HolidaySource):
    """Fixed set of holiday dates, e.g. loaded from a file or a test fixture."""

    def __init__(self, holidays: Iterable[date | str] = ()) -> None:
        self._holidays = {_as_date(pd.Timestamp(d)) for d in holidays}

    def is_holiday(self, day: date) -> bool:
        return _as_date(day) in self._holidays


class PandasHolidaySource(HolidaySource):
    """
    Holidays from a pandas holiday calendar (US federal by default).
    Dates are computed one year at a time and cached.
    """

    def __init__(self, calendar: AbstractHolidayCalendar | None = None) -> None:
        self._calendar = calendar or USFederalHolidayCalendar()
        self._by_year: dict[int, set[date]] = {}

    def _year(self, year: int) -> set[date]:
        if year not in self._by_year:
            idx = self._calendar.holidays(start=f"{year}-01-01", end=f"{year}-12-31")
            self._by_year[year] = {ts.date() for ts in idx}
        return self._by_year[year]

    def is_holiday(self, day: date) -> bool:
        day = _as_date(day)
        return day in self._year(day.year)


class ExchangeHolidaySource(HolidaySource):
    """
    Holidays from an exchange session calendar (e.g. "XNYS").
    A weekday that is not a session is a holiday. Dates outside the
    calendar's bounds raise exchange_calendars' DateOutOfBounds.
    """

    def __init__(self, exchange: str = "XNYS") -> None:
        self.exchange = exchange
        self._calendar = xcals.get_calendar(exchange)

    def is_holiday(self, day: date) -> bool:
        day = _as_date(day)
        if day.weekday() >= SATURDAY:
            return False
        return not self._calendar.is_session(pd.Timestamp(day))


class TradingCalendar:
    """Display-date resolution and all-day closure checks for one market."""

    def __init__(self, holidays: HolidaySource | None = None) -> None:
        self.holidays = holidays or PandasHolidaySource()

    def resolve_display_date(self, now: date | datetime) -> date:
        """
        Date whose intraday series is shown "as of today": Saturday and Sunday
        resolve to the preceding Friday, any other day to itself.
        """
        day = _as_date(now)
        weekday = day.weekday()
        if weekday == SATURDAY:
            return day - timedelta(days=1)
        if weekday == SUNDAY:
            return day - timedelta(days=2)
        return day

    def is_market_closed_all_day(self, day: date | datetime) -> bool:
        """True on weekends and recognized holidays."""
        day = _as_date(day)
        if day.weekday() >= SATURDAY:
            return True
        closed = self.holidays.is_holiday(day)
        if closed:
            logger.debug("Market closed all day on %s (holiday)", day)
        return closed
