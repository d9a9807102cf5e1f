"""
Paper collaborators: in-memory quotes, history and holdings storage.

No network connection. Quotes are pushed by the caller (a simulation loop or a
test) and fanned out to open streams synchronously; open handles are tracked
so leaks are observable.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal

import pandas as pd

from folio_core.bars import DailyBar
from folio_core.errors import PersistenceError
from folio_core.execution.sources import (
    ErrorCallback,
    FeedHandle,
    HistorySource,
    HoldingsStore,
    QuoteSource,
    TickCallback,
)
from folio_core.ledger import Account, Holding
from folio_core.trade import as_decimal


class PaperFeedHandle(FeedHandle):
    """Stream handle issued by PaperQuoteSource."""

    def __init__(self, source: PaperQuoteSource, symbol: str, on_tick: TickCallback, on_error: ErrorCallback) -> None:
        self.feed_id = f"paper-{uuid.uuid4().hex[:12]}"
        self.symbol = symbol
        self.on_tick = on_tick
        self.on_error = on_error
        self._source = source
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._source._release(self)


class PaperQuoteSource(QuoteSource):
    """
    Simulated quotes. `push` records a price and delivers it to every open
    stream for the symbol; `fail` delivers an error. A newly opened stream
    does not replay the last price.
    """

    def __init__(self, latest_prices: Mapping[str, Decimal | float | int | str] | None = None) -> None:
        self._prices: dict[str, Decimal] = {s: as_decimal(p) for s, p in (latest_prices or {}).items()}
        self._open: list[PaperFeedHandle] = []
        self._unavailable: set[str] = set()
        self.opened_count = 0

    def fetch_quote(self, symbol: str) -> Decimal:
        if symbol not in self._prices:
            raise KeyError(f"No quote for {symbol}")
        return self._prices[symbol]

    def stream(self, symbol: str, on_tick: TickCallback, on_error: ErrorCallback) -> FeedHandle:
        if symbol in self._unavailable:
            raise ConnectionError(f"stream unavailable for {symbol}")
        handle = PaperFeedHandle(self, symbol, on_tick, on_error)
        self._open.append(handle)
        self.opened_count += 1
        return handle

    def set_unavailable(self, symbol: str, unavailable: bool = True) -> None:
        """Make stream() refuse to open a feed for symbol."""
        if unavailable:
            self._unavailable.add(symbol)
        else:
            self._unavailable.discard(symbol)

    def push(self, symbol: str, price: Decimal | float | int | str) -> None:
        """Record a new price and deliver it to open streams for symbol."""
        self._prices[symbol] = as_decimal(price)
        for handle in self.open_handles(symbol):
            handle.on_tick(self._prices[symbol])

    def fail(self, symbol: str, exc: BaseException | None = None) -> None:
        """Deliver a feed error to open streams for symbol."""
        exc = exc or ConnectionError(f"feed dropped for {symbol}")
        for handle in self.open_handles(symbol):
            handle.on_error(exc)

    def open_handles(self, symbol: str | None = None) -> list[PaperFeedHandle]:
        return [h for h in self._open if symbol is None or h.symbol == symbol]

    def open_count(self, symbol: str | None = None) -> int:
        return len(self.open_handles(symbol))

    def _release(self, handle: PaperFeedHandle) -> None:
        self._open.remove(handle)


class StaticHistorySource(HistorySource):
    """Historical bars from a preloaded mapping of symbol -> DataFrame or bars."""

    def __init__(self, bars: Mapping[str, pd.DataFrame | Sequence[DailyBar]] | None = None) -> None:
        self._bars = dict(bars or {})

    def set_bars(self, symbol: str, bars: pd.DataFrame | Sequence[DailyBar]) -> None:
        self._bars[symbol] = bars

    def fetch_historical_bars(self, symbol: str) -> pd.DataFrame | Sequence[DailyBar]:
        return self._bars.get(symbol, ())


class InMemoryHoldingsStore(HoldingsStore):
    """
    Holdings and accounts kept in dicts, keyed by user id. `fail_writes` makes
    every persist call raise PersistenceError.
    """

    def __init__(self) -> None:
        self._holdings: dict[str, dict[str, int]] = {}
        self._accounts: dict[str, Decimal] = {}
        self.fail_writes = False

    def seed(self, user_id: str, holdings: Mapping[str, int], buying_power: Decimal | int | str) -> None:
        self._holdings[user_id] = dict(holdings)
        self._accounts[user_id] = as_decimal(buying_power)

    def fetch_holdings(self, user_id: str) -> dict[str, int]:
        return dict(self._holdings.get(user_id, {}))

    def fetch_account(self, user_id: str) -> Account:
        return Account(buying_power=self._accounts.get(user_id, Decimal("0")))

    def persist_holding(self, user_id: str, holding: Holding) -> None:
        if self.fail_writes:
            raise PersistenceError(f"could not write holding {holding.symbol} for {user_id}")
        self._holdings.setdefault(user_id, {})[holding.symbol] = holding.quantity

    def persist_account(self, user_id: str, account: Account) -> None:
        if self.fail_writes:
            raise PersistenceError(f"could not write account for {user_id}")
        self._accounts[user_id] = account.buying_power
