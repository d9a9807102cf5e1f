"""
Collaborator abstractions consumed by the core.

QuoteSource (snapshot + streaming quotes), HistorySource (historical bars),
HoldingsStore (holdings and buying power persistence). Paper implementations
live in folio_core.execution.paper; HTTP/websocket clients implement the same
interfaces outside this package.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pandas as pd

    from folio_core.bars import DailyBar
    from folio_core.ledger import Account, Holding

TickCallback = Callable[[Decimal], None]
ErrorCallback = Callable[[BaseException], None]


class FeedHandle(ABC):
    """An open live quote stream for one symbol."""

    @abstractmethod
    def close(self) -> None:
        """Release the stream. Must be safe to call more than once."""
        ...


class QuoteSource(ABC):
    """
    Quote provider. Same interface for paper and live data.
    Ticks and errors are delivered through callbacks on the caller's loop.
    """

    @abstractmethod
    def fetch_quote(self, symbol: str) -> Decimal:
        """Current price for symbol."""
        ...

    @abstractmethod
    def stream(self, symbol: str, on_tick: TickCallback, on_error: ErrorCallback) -> FeedHandle:
        """
        Open a live stream for symbol. Each tick calls on_tick(price); a feed
        failure calls on_error(exc). Returns the handle that releases it.
        """
        ...


class HistorySource(ABC):
    """Historical bar provider."""

    @abstractmethod
    def fetch_historical_bars(self, symbol: str) -> "pd.DataFrame | Sequence[DailyBar]":
        """Bars for symbol. Order is not guaranteed."""
        ...


class HoldingsStore(ABC):
    """Persistence for a user's holdings and buying power."""

    @abstractmethod
    def fetch_holdings(self, user_id: str) -> Mapping[str, int]:
        """Symbol -> quantity for the user."""
        ...

    @abstractmethod
    def fetch_account(self, user_id: str) -> "Account":
        """The user's buying power."""
        ...

    @abstractmethod
    def persist_holding(self, user_id: str, holding: "Holding") -> None:
        """Write one holding row. Raises PersistenceError on failure."""
        ...

    @abstractmethod
    def persist_account(self, user_id: str, account: "Account") -> None:
        """Write the account. Raises PersistenceError on failure."""
        ...
