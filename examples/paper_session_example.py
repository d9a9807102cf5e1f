"""
Paper session example: mount a holdings view, stream prices, trade, tear down.

Shows: PortfolioSession with paper collaborators, EventLoop handlers for ticks,
feed errors and trade outcomes, daily change projection and portfolio value.
"""

from __future__ import annotations

import logging
from datetime import datetime

import pandas as pd

from folio_core import EventLoop, FeedErrorEvent, PortfolioSession, PriceTick, SessionConfig, Side, TradeEvent
from folio_core.events import Event
from folio_core.execution import InMemoryHoldingsStore, PaperQuoteSource, StaticHistorySource


def print_event(event: Event) -> None:
    """Display-layer stand-in: print what would be re-rendered."""
    if isinstance(event, PriceTick):
        print(f"  [Tick] {event.symbol} {event.price}")
    elif isinstance(event, FeedErrorEvent):
        print(f"  [Feed error] {event.symbol}: showing stale {event.last_price}")
    elif isinstance(event, TradeEvent):
        result = event.result
        status = "applied" if result.ok else f"rejected ({result.reason.value})"
        print(f"  [Trade] {result.request.side.value} {result.request.quantity} {result.symbol}: {status}")


def intraday_bars(day: str, closes: list[float]) -> pd.DataFrame:
    """Newest-first bars, the way many feeds return them."""
    idx = pd.date_range(f"{day} 09:30", periods=len(closes), freq="30min")
    return pd.DataFrame({"close": closes}, index=idx).iloc[::-1]


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    now = datetime(2024, 1, 13, 12, 0)  # Saturday: the view shows Friday's session

    store = InMemoryHoldingsStore()
    store.seed("demo", {"AAPL": 10, "MSFT": 0}, "1000")
    quotes = PaperQuoteSource()
    history = StaticHistorySource({
        "AAPL": intraday_bars("2024-01-12", [185.0, 185.6, 186.1, 185.9]),
        "MSFT": intraday_bars("2024-01-12", [388.0, 389.2]),
    })
    events = EventLoop()
    events.subscribe(print_event)

    session = PortfolioSession("demo", store, quotes, history, config=SessionConfig(), events=events, clock=lambda: now)
    with session:
        quotes.push("AAPL", "185.92")
        print(f"Ready: {session.ready}, value: {session.value().total}")

        print("\n--- Buy 2 MSFT at market ---")
        cost = session.quote_cost("MSFT", 2, price=389)
        print(f"Estimated cost: {cost}")
        session.submit("MSFT", 2, Side.BUY, 389)
        quotes.push("MSFT", "389.10")

        print("\n--- Sell 20 AAPL (more than held) ---")
        session.submit("AAPL", 20, Side.SELL)

        print("\n--- Feed drops for AAPL ---")
        quotes.fail("AAPL")

        print("\n--- Holdings view ---")
        for symbol, change in session.view().items():
            direction = "up" if change.is_gain else "down"
            print(f"  {symbol}: {session.ledger.get(symbol)} shares, {change.percent_label} ({direction}) on {change.display_date}")
        print(f"Buying power: {session.ledger.buying_power}, total value: {session.value().total}")

    print(f"\nOpen feeds after teardown: {quotes.open_count()}")


if __name__ == "__main__":
    main()
