"""
Price subscription manager: one live quote feed per displayed symbol.

Owns every feed handle. Subscribing is idempotent per symbol, so a symbol
never has two concurrent feeds. Ticks delivered by a feed that has since been
closed are discarded. A feed error keeps the last known price and flags it
stale; other symbols are unaffected.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from folio_core.errors import FeedError
from folio_core.event_loop import EventLoop
from folio_core.events import FeedErrorEvent, PriceTick
from folio_core.execution.sources import FeedHandle, QuoteSource
from folio_core.trade import as_decimal

logger = logging.getLogger(__name__)


@dataclass
class PriceSubscription:
    """Latest known price for one subscribed symbol. None until the first tick."""

    symbol: str
    last_price: Decimal | None = None
    stale: bool = False
    last_error: FeedError | None = None
    handle: FeedHandle | None = None


class PriceSubscriptionManager:
    """
    Opens and closes live feeds through a QuoteSource. Events (ticks, feed
    errors) are dispatched on the optional EventLoop for the display layer.
    """

    def __init__(
        self,
        quotes: QuoteSource,
        *,
        events: EventLoop | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.quotes = quotes
        self.events = events
        self._clock = clock
        self._active: dict[str, PriceSubscription] = {}

    def subscribe(self, symbol: str) -> bool:
        """
        Open a feed for symbol. No-op if already subscribed. Returns True if a
        feed was opened. Raises FeedError if the source cannot open one.
        """
        if symbol in self._active:
            logger.debug("Already subscribed to %s", symbol)
            return False
        sub = PriceSubscription(symbol=symbol)
        self._active[symbol] = sub
        try:
            handle = self.quotes.stream(
                symbol,
                lambda price: self._on_tick(sub, price),
                lambda exc: self._on_error(sub, exc),
            )
        except Exception as e:  # noqa: BLE001
            self._active.pop(symbol, None)
            err = FeedError(symbol, e)
            logger.warning("Could not open feed for %s: %s", symbol, e)
            raise err from e
        if self._active.get(symbol) is not sub:
            # Unsubscribed from inside a callback while opening.
            handle.close()
            return False
        sub.handle = handle
        logger.info("Subscribed to %s", symbol)
        return True

    def unsubscribe(self, symbol: str) -> None:
        """Close the feed for symbol. Safe if it was never subscribed."""
        sub = self._active.pop(symbol, None)
        if sub is None:
            return
        if sub.handle is not None:
            sub.handle.close()
        logger.info("Unsubscribed from %s", symbol)

    def unsubscribe_all(self) -> None:
        """Close every active feed (view teardown)."""
        for symbol in list(self._active):
            self.unsubscribe(symbol)

    def latest_price(self, symbol: str) -> Decimal | None:
        """Most recent tick for symbol, or None if unknown or not subscribed."""
        sub = self._active.get(symbol)
        return sub.last_price if sub is not None else None

    def latest_prices(self) -> dict[str, Decimal | None]:
        return {s: sub.last_price for s, sub in self._active.items()}

    def is_subscribed(self, symbol: str) -> bool:
        return symbol in self._active

    def is_stale(self, symbol: str) -> bool:
        sub = self._active.get(symbol)
        return sub is not None and sub.stale

    def symbols(self) -> list[str]:
        """Currently subscribed symbols, in subscription order."""
        return list(self._active)

    def reconcile_symbol(self, symbol: str, quantity: int) -> None:
        """Subscribe if quantity is positive, otherwise unsubscribe."""
        if quantity > 0:
            self.subscribe(symbol)
        else:
            self.unsubscribe(symbol)

    def reconcile(self, holdings: Mapping[str, int]) -> list[FeedError]:
        """
        Make the active set equal to the symbols with positive quantity.
        Feeds that fail to open are returned, not raised, so one bad symbol
        does not block the rest.
        """
        wanted = [s for s, q in holdings.items() if q > 0]
        for symbol in self.symbols():
            if symbol not in wanted:
                self.unsubscribe(symbol)
        failures: list[FeedError] = []
        for symbol in wanted:
            try:
                self.subscribe(symbol)
            except FeedError as err:
                failures.append(err)
                self._dispatch(FeedErrorEvent(timestamp=self._clock(), symbol=symbol, error=err))
        return failures

    def _dispatch(self, event) -> None:
        if self.events is not None:
            self.events.dispatch(event)

    def _on_tick(self, sub: PriceSubscription, price) -> None:
        if self._active.get(sub.symbol) is not sub:
            logger.debug("Discarding late tick for %s", sub.symbol)
            return
        price = as_decimal(price)
        if not price.is_finite():
            self._on_error(sub, ValueError(f"non-finite price {price}"))
            return
        sub.last_price = price
        sub.stale = False
        self._dispatch(PriceTick(timestamp=self._clock(), symbol=sub.symbol, price=sub.last_price))

    def _on_error(self, sub: PriceSubscription, exc: BaseException) -> None:
        if self._active.get(sub.symbol) is not sub:
            logger.debug("Discarding late feed error for %s", sub.symbol)
            return
        err = exc if isinstance(exc, FeedError) else FeedError(sub.symbol, exc)
        sub.stale = True
        sub.last_error = err
        logger.warning("Feed error for %s, keeping last price %s: %s", sub.symbol, sub.last_price, exc)
        self._dispatch(
            FeedErrorEvent(timestamp=self._clock(), symbol=sub.symbol, error=err, last_price=sub.last_price)
        )
