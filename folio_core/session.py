"""
Portfolio session: the lifecycle of one user's holdings view.

mount() loads holdings and buying power, opens a price feed per held symbol
and fetches historical bars; submit() runs a trade through the execution
engine and persists the result; view() projects daily change series;
teardown() releases every feed exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

import pandas as pd

from folio_core.config import SessionConfig
from folio_core.errors import FeedError, FolioError, PersistenceError
from folio_core.event_loop import EventLoop
from folio_core.execution.engine import TradeExecutionEngine
from folio_core.execution.sources import HistorySource, HoldingsStore, QuoteSource
from folio_core.execution.types import Applied, TradeResult
from folio_core.ledger import HoldingsLedger
from folio_core.subscriptions import PriceSubscriptionManager
from folio_core.trade import Side, TradeRequest
from folio_core.valuation import HoldingDailyChange, SeriesProjector, Valuation, portfolio_value

logger = logging.getLogger(__name__)


class PortfolioSession:
    """
    Owns the ledger, engine, subscription manager and projector for one user.
    Use as a context manager to pair mount() with teardown().
    """

    def __init__(
        self,
        user_id: str,
        store: HoldingsStore,
        quotes: QuoteSource,
        history: HistorySource,
        *,
        config: SessionConfig | None = None,
        events: EventLoop | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.user_id = user_id
        self.store = store
        self.history = history
        self.config = config or SessionConfig.from_env()
        self.events = events or EventLoop()
        self._clock = clock or (lambda: pd.Timestamp.now(tz=self.config.market_timezone).to_pydatetime())
        self.calendar = self.config.build_calendar()
        self.projector = SeriesProjector(self.calendar)
        self.subscriptions = PriceSubscriptionManager(quotes, events=self.events, clock=self._clock)
        self.ledger: HoldingsLedger | None = None
        self.engine: TradeExecutionEngine | None = None
        self._bars: dict[str, Any] = {}
        self._torn_down = False

    @property
    def mounted(self) -> bool:
        return self.engine is not None and not self._torn_down

    def mount(self) -> list[FeedError]:
        """
        Load holdings and buying power, subscribe to every held symbol and
        fetch its bars. Returns feeds that failed to open.
        """
        if self._torn_down:
            raise FolioError("session already torn down")
        holdings = self.store.fetch_holdings(self.user_id)
        account = self.store.fetch_account(self.user_id)
        self.ledger = HoldingsLedger.from_mapping(holdings, account.buying_power)
        self.engine = TradeExecutionEngine(
            self.ledger,
            subscriptions=self.subscriptions,
            events=self.events,
            clock=self._clock,
        )
        failures = self.subscriptions.reconcile(self.ledger.positions)
        for symbol in self.ledger.visible_symbols():
            self._load_bars(symbol)
        logger.info(
            "Session mounted for %s: %d holdings, buying power %s",
            self.user_id,
            len(self.ledger.visible_symbols()),
            self.ledger.buying_power,
        )
        return failures

    def teardown(self) -> None:
        """Release every price feed. Later calls are no-ops."""
        if self._torn_down:
            return
        self._torn_down = True
        self.subscriptions.unsubscribe_all()
        logger.info("Session torn down for %s", self.user_id)

    def __enter__(self) -> PortfolioSession:
        self.mount()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.teardown()

    def resync(self) -> list[FeedError]:
        """
        Reopen feeds for held symbols that have none (e.g. after a feed
        failed to open) and close feeds for symbols no longer held.
        """
        self._require_engine()
        failures = self.subscriptions.reconcile(self.ledger.positions)
        for symbol in self.ledger.visible_symbols():
            if symbol not in self._bars:
                self._load_bars(symbol)
        return failures

    def _require_engine(self) -> TradeExecutionEngine:
        if not self.mounted:
            raise FolioError("session is not mounted")
        return self.engine

    def _load_bars(self, symbol: str) -> None:
        self._bars[symbol] = self.history.fetch_historical_bars(symbol)

    @property
    def ready(self) -> bool:
        """True once every visible holding has a known price."""
        if not self.mounted:
            return False
        return all(self.subscriptions.latest_price(s) is not None for s in self.ledger.visible_symbols())

    def now(self) -> datetime:
        return self._clock()

    def quote_cost(self, symbol: str, quantity: int, price: Decimal | None = None) -> Decimal | None:
        """Estimated cost of quantity shares at price, or the latest live price."""
        engine = self._require_engine()
        if price is None:
            price = self.subscriptions.latest_price(symbol)
        if price is None:
            return None
        return engine.estimate_cost(quantity, price)

    def submit(
        self,
        symbol: str,
        quantity: int,
        side: Side,
        market_price: Decimal | float | str | None = None,
    ) -> TradeResult:
        """
        Execute a trade and persist the changed holding and account.
        Raises PersistenceError (with `.result`) if the store write fails; the
        in-memory trade is not rolled back.
        """
        engine = self._require_engine()
        request = TradeRequest(symbol=symbol, quantity=quantity, side=side, market_price=market_price)
        result = engine.execute(request)
        if not isinstance(result, Applied):
            return result
        if result.new_quantity > 0 and symbol not in self._bars:
            self._load_bars(symbol)
        if self.config.persist_trades:
            try:
                self.store.persist_holding(self.user_id, self.ledger.holding(symbol))
                self.store.persist_account(self.user_id, self.ledger.account)
            except PersistenceError as e:
                logger.warning("Trade applied but not persisted for %s: %s", self.user_id, e)
                raise PersistenceError(str(e), result=result) from e
        return result

    def view(self, now: datetime | None = None) -> dict[str, HoldingDailyChange]:
        """Daily change per visible holding, as of now."""
        self._require_engine()
        return self.projector.project(
            self.ledger.visible_symbols(),
            self.ledger,
            self._bars,
            now or self.now(),
        )

    def value(self) -> Valuation:
        """Buying power plus holdings at the latest live prices."""
        self._require_engine()
        return portfolio_value(self.ledger, self.subscriptions.latest_prices())
