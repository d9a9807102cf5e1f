"""
Event loop: single-threaded, deterministic event dispatch.

The price subscription manager pushes PriceTick and FeedErrorEvent through
here as feeds deliver; the execution engine pushes a TradeEvent for every
submission, applied or rejected. The display layer registers handlers and
re-renders from them. Handlers run in registration order.
"""

from collections.abc import Callable

from folio_core.events import Event


class EventLoop:
    """
    Deterministic dispatcher. Handlers are called in registration order
    for each event. No I/O; pure in-memory processing.
    """

    def __init__(self) -> None:
        self._handlers: list[Callable[[Event], None]] = []

    def subscribe(self, handler: Callable[[Event], None]) -> None:
        """Register a handler to be called for every event."""
        self._handlers.append(handler)

    def unsubscribe(self, handler: Callable[[Event], None]) -> None:
        """Remove a handler. No-op if it was never registered."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    def dispatch(self, event: Event) -> None:
        """Process one event through all handlers in order."""
        for h in list(self._handlers):
            h(event)

    def run(self, events: list[Event]) -> None:
        """Process a sequence of events in order (e.g. a replayed feed)."""
        for event in events:
            self.dispatch(event)
