"""
Session configuration, read from the environment.

FOLIO_MARKET_CALENDAR: "federal" (US public holidays) or an exchange code
such as "XNYS". FOLIO_MARKET_TIMEZONE: zone used for "now". FOLIO_PERSIST_TRADES:
"true"/"false", whether applied trades are written to the holdings store.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from folio_core.calendar import ExchangeHolidaySource, PandasHolidaySource, TradingCalendar

logger = logging.getLogger(__name__)

MARKET_CALENDAR_ENV = "FOLIO_MARKET_CALENDAR"
MARKET_TIMEZONE_ENV = "FOLIO_MARKET_TIMEZONE"
PERSIST_TRADES_ENV = "FOLIO_PERSIST_TRADES"

FEDERAL_CALENDAR = "federal"


@dataclass(frozen=True)
class SessionConfig:
    market_calendar: str = FEDERAL_CALENDAR
    market_timezone: str = "America/New_York"
    persist_trades: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SessionConfig:
        env = os.environ if environ is None else environ
        persist = env.get(PERSIST_TRADES_ENV, "true").strip().lower()
        if persist not in ("true", "false"):
            logger.warning("%s=%r is not true/false; persisting trades", PERSIST_TRADES_ENV, persist)
        return cls(
            market_calendar=env.get(MARKET_CALENDAR_ENV, FEDERAL_CALENDAR).strip() or FEDERAL_CALENDAR,
            market_timezone=env.get(MARKET_TIMEZONE_ENV, cls.market_timezone).strip() or cls.market_timezone,
            persist_trades=persist != "false",
        )

    def build_calendar(self) -> TradingCalendar:
        """TradingCalendar for the configured holiday source."""
        if self.market_calendar.lower() == FEDERAL_CALENDAR:
            return TradingCalendar(PandasHolidaySource())
        return TradingCalendar(ExchangeHolidaySource(self.market_calendar.upper()))
