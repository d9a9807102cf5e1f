"""
Trade execution engine: validate a TradeRequest and apply it to the ledger.

Submitted -> Validated -> Applied, or Submitted -> Rejected. Trade-time
problems come back as a Rejected result with a specific reason; the ledger is
only written when both the quantity and the cash change are valid. After an
applied trade the symbol's price subscription is reconciled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from folio_core.errors import FeedError, TradeError
from folio_core.event_loop import EventLoop
from folio_core.events import Event, FeedErrorEvent, TradeEvent
from folio_core.execution.types import Applied, Rejected, RejectReason, TradeResult
from folio_core.ledger import HoldingsLedger
from folio_core.trade import Side, TradeRequest, as_decimal

if TYPE_CHECKING:
    from folio_core.subscriptions import PriceSubscriptionManager

logger = logging.getLogger(__name__)


class TradeExecutionEngine:
    """
    Sole writer of the holdings ledger. Trades are applied synchronously, one
    at a time. Rejected trades are logged and kept for reporting.
    """

    def __init__(
        self,
        ledger: HoldingsLedger,
        *,
        subscriptions: PriceSubscriptionManager | None = None,
        events: EventLoop | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.ledger = ledger
        self.subscriptions = subscriptions
        self.events = events
        self._clock = clock
        self._rejected_log: list[Rejected] = []

    def get_rejected_log(self) -> list[Rejected]:
        """Return log of rejected trades for debugging and reporting."""
        return list(self._rejected_log)

    @staticmethod
    def estimate_cost(quantity: int, price: Decimal | int | float | str) -> Decimal:
        """Quantity x price, as shown before submitting."""
        return as_decimal(price) * quantity

    def _reject(self, request: TradeRequest, reason: RejectReason, message: str, ts: datetime) -> Rejected:
        result = Rejected(request=request, reason=reason, message=message, timestamp=ts)
        self._rejected_log.append(result)
        logger.info("Trade rejected: %s %s %s: %s", request.side.value, request.quantity, request.symbol, message)
        self._dispatch(TradeEvent(timestamp=ts, result=result))
        return result

    def _dispatch(self, event: Event) -> None:
        if self.events is not None:
            self.events.dispatch(event)

    def _resolve_price(self, request: TradeRequest) -> Decimal | None:
        if request.market_price is not None:
            return request.market_price
        if self.subscriptions is not None:
            return self.subscriptions.latest_price(request.symbol)
        return None

    def execute(self, request: TradeRequest) -> TradeResult:
        """Validate and apply one trade. Never raises for trade-time errors."""
        ts = request.timestamp or self._clock()
        qty = request.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            return self._reject(request, RejectReason.INVALID_QUANTITY, f"quantity must be a positive integer, got {qty!r}", ts)

        price = self._resolve_price(request)
        if price is None:
            return self._reject(request, RejectReason.STALE_PRICE, f"no known price for {request.symbol}", ts)
        if price.is_nan():
            return self._reject(request, RejectReason.STALE_PRICE, f"price for {request.symbol} is not a number", ts)
        if not price.is_finite():
            return self._reject(request, RejectReason.INVALID_PRICE, f"price {price} is not finite", ts)
        if price < 0:
            return self._reject(request, RejectReason.INVALID_PRICE, f"negative price {price}", ts)

        amount = price * qty
        if request.side == Side.BUY:
            delta, cash_delta = qty, -amount
            if self.ledger.buying_power < amount:
                return self._reject(
                    request,
                    RejectReason.INSUFFICIENT_FUNDS,
                    f"cost {amount} exceeds buying power {self.ledger.buying_power}",
                    ts,
                )
        else:
            delta, cash_delta = -qty, amount
            held = self.ledger.get(request.symbol)
            if qty > held:
                return self._reject(request, RejectReason.OVER_SELL, f"selling {qty} but only {held} held", ts)

        try:
            new_qty, new_cash = self.ledger.apply(request.symbol, delta, cash_delta)
        except TradeError as e:
            return self._reject(request, RejectReason.from_error(e), str(e), ts)

        result = Applied(
            request=request,
            price=price,
            quantity_delta=delta,
            cash_delta=cash_delta,
            new_quantity=new_qty,
            new_buying_power=new_cash,
            timestamp=ts,
        )
        logger.info(
            "Trade applied: %s %s %s @ %s -> quantity=%s, buying_power=%s",
            request.side.value,
            qty,
            request.symbol,
            price,
            new_qty,
            new_cash,
        )
        self._reconcile(request.symbol, new_qty)
        self._dispatch(TradeEvent(timestamp=ts, result=result))
        return result

    def _reconcile(self, symbol: str, quantity: int) -> None:
        if self.subscriptions is None:
            return
        try:
            self.subscriptions.reconcile_symbol(symbol, quantity)
        except FeedError as e:
            # The trade stands; the symbol has no live price until the subscriptions are reconciled again.
            logger.warning("Trade applied but feed for %s could not be opened: %s", symbol, e)
            self._dispatch(FeedErrorEvent(timestamp=self._clock(), symbol=symbol, error=e))
