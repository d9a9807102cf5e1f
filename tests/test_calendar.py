"""
Tests for TradingCalendar and holiday sources.
"""

from datetime import date, datetime

import pytest

from folio_core.calendar import (
    ExchangeHolidaySource,
    PandasHolidaySource,
    StaticHolidaySource,
    TradingCalendar,
)


# --- resolve_display_date ---


def test_saturday_resolves_to_friday():
    cal = TradingCalendar(StaticHolidaySource())
    assert cal.resolve_display_date(date(2024, 1, 13)) == date(2024, 1, 12)


def test_sunday_resolves_to_friday():
    cal = TradingCalendar(StaticHolidaySource())
    assert cal.resolve_display_date(date(2024, 1, 14)) == date(2024, 1, 12)


@pytest.mark.parametrize("day", [8, 9, 10, 11, 12])
def test_weekday_resolves_to_itself(day):
    cal = TradingCalendar(StaticHolidaySource())
    assert cal.resolve_display_date(date(2024, 1, day)) == date(2024, 1, day)


def test_resolve_accepts_datetime():
    cal = TradingCalendar(StaticHolidaySource())
    assert cal.resolve_display_date(datetime(2024, 1, 14, 23, 59)) == date(2024, 1, 12)


# --- is_market_closed_all_day ---


def test_weekends_closed():
    cal = TradingCalendar(StaticHolidaySource())
    assert cal.is_market_closed_all_day(date(2024, 1, 13))
    assert cal.is_market_closed_all_day(date(2024, 1, 14))
    assert not cal.is_market_closed_all_day(date(2024, 1, 12))


def test_static_holidays():
    cal = TradingCalendar(StaticHolidaySource(["2024-01-10", date(2024, 1, 11)]))
    assert cal.is_market_closed_all_day(date(2024, 1, 10))
    assert cal.is_market_closed_all_day(datetime(2024, 1, 11, 12, 0))
    assert not cal.is_market_closed_all_day(date(2024, 1, 12))


def test_default_source_is_us_federal():
    cal = TradingCalendar()
    assert isinstance(cal.holidays, PandasHolidaySource)
    assert cal.is_market_closed_all_day(date(2024, 7, 4))
    assert cal.is_market_closed_all_day(date(2024, 1, 15))  # MLK Day
    assert cal.is_market_closed_all_day(date(2024, 12, 25))
    assert not cal.is_market_closed_all_day(date(2024, 7, 5))


def test_exchange_source_follows_session_calendar():
    source = ExchangeHolidaySource("XNYS")
    assert source.is_holiday(date(2024, 3, 29))  # Good Friday
    assert not source.is_holiday(date(2024, 3, 28))
    assert not source.is_holiday(date(2024, 3, 30))  # weekend, not a holiday
