"""
Execution-layer types: rejection reasons and the tagged trade result.

A submission ends in exactly one of Applied or Rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Union

from folio_core.errors import InsufficientFunds, InvalidQuantity, OverSell, StalePrice, TradeError
from folio_core.trade import Side, TradeRequest


class RejectReason(Enum):
    """Why a trade was not applied."""

    INVALID_QUANTITY = "invalid_quantity"
    INVALID_PRICE = "invalid_price"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    OVER_SELL = "over_sell"
    STALE_PRICE = "stale_price"

    @classmethod
    def from_error(cls, err: TradeError) -> RejectReason:
        if isinstance(err, InsufficientFunds):
            return cls.INSUFFICIENT_FUNDS
        if isinstance(err, OverSell):
            return cls.OVER_SELL
        if isinstance(err, StalePrice):
            return cls.STALE_PRICE
        if isinstance(err, InvalidQuantity):
            return cls.INVALID_QUANTITY
        raise TypeError(f"no reject reason for {type(err).__name__}")


@dataclass(frozen=True)
class Applied:
    """A trade that changed the ledger."""

    request: TradeRequest
    price: Decimal
    quantity_delta: int
    cash_delta: Decimal
    new_quantity: int
    new_buying_power: Decimal
    timestamp: datetime

    @property
    def symbol(self) -> str:
        return self.request.symbol

    @property
    def side(self) -> Side:
        return self.request.side

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """A trade that left the ledger unchanged."""

    request: TradeRequest
    reason: RejectReason
    message: str
    timestamp: datetime

    @property
    def symbol(self) -> str:
        return self.request.symbol

    @property
    def ok(self) -> bool:
        return False


TradeResult = Union[Applied, Rejected]
