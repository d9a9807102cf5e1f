"""
Error taxonomy for the holdings core.

Trade-time errors are raised by the ledger and turned into rejections by the
execution engine; they never escape `TradeExecutionEngine.execute`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from folio_core.execution.types import TradeResult


class FolioError(Exception):
    """Base class for all errors raised by folio_core."""


class TradeError(FolioError):
    """A trade could not be applied. The ledger is left unchanged."""


class InvalidQuantity(TradeError):
    """Quantity is not a positive integer, or would leave a holding negative."""


class InsufficientFunds(TradeError):
    """Spending more than the available buying power."""


class OverSell(TradeError):
    """Selling more shares than are held."""


class StalePrice(TradeError):
    """No known market price for the symbol at submission time."""


class FeedError(FolioError):
    """A live quote feed reported an error for one symbol. Non-fatal."""

    def __init__(self, symbol: str, cause: BaseException | None = None) -> None:
        super().__init__(f"feed error for {symbol}: {cause!s}" if cause else f"feed error for {symbol}")
        self.symbol = symbol
        self.cause = cause


class PersistenceError(FolioError):
    """
    A collaborator write failed. In-memory state is not rolled back; `result`
    carries the applied trade so the caller can reconcile.
    """

    def __init__(self, message: str, result: "TradeResult | None" = None) -> None:
        super().__init__(message)
        self.result = result
