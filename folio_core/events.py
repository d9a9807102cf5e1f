"""
Event types for the callback-driven core.

Events are immutable data carriers. The display layer reacts to them;
they do not contain business logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from folio_core.errors import FeedError
    from folio_core.execution.types import TradeResult


@dataclass(frozen=True)
class Event:
    """Base type for all events. Subclass to define event kinds."""

    timestamp: datetime
    payload: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.timestamp, datetime):
            object.__setattr__(self, "timestamp", datetime.fromisoformat(str(self.timestamp)))


@dataclass(frozen=True, kw_only=True)
class PriceTick(Event):
    """A live price update applied to a symbol's subscription."""

    symbol: str
    price: Decimal


@dataclass(frozen=True, kw_only=True)
class FeedErrorEvent(Event):
    """A feed failed for one symbol; its last known price is retained."""

    symbol: str
    error: "FeedError"
    last_price: Decimal | None = None


@dataclass(frozen=True, kw_only=True)
class TradeEvent(Event):
    """Outcome of one trade submission (applied or rejected)."""

    result: "TradeResult"
