"""
TradeRequest: one user submission to buy or sell a symbol.

Immutable and transient. Validation happens in the execution engine so that
a bad request becomes a rejection rather than an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class Side(Enum):
    BUY = "buy"
    SELL = "sell"


def as_decimal(value: Decimal | int | float | str | None) -> Decimal | None:
    """Coerce a price or amount to Decimal. Non-int numerics go through str to avoid binary noise."""
    if value is None or isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str)):
        return Decimal(value)
    return Decimal(str(value))


@dataclass(frozen=True)
class TradeRequest:
    """
    Trade intent. `market_price` may be None, in which case the engine falls
    back to the latest live price for the symbol.
    """

    symbol: str
    quantity: int
    side: Side
    market_price: Decimal | None = None
    timestamp: datetime | None = None

    def __post_init__(self) -> None:
        if self.market_price is not None and not isinstance(self.market_price, Decimal):
            object.__setattr__(self, "market_price", as_decimal(self.market_price))
