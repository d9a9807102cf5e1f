"""
folio-core: holdings ledger, simulated trade execution and live valuation core.

No HTTP clients, routing or rendering. Collaborators are injected through the
interfaces in folio_core.execution.sources.
"""

__version__ = "0.1.0"

from folio_core.events import Event, FeedErrorEvent, PriceTick, TradeEvent
from folio_core.event_loop import EventLoop
from folio_core.errors import (
    FeedError,
    FolioError,
    InsufficientFunds,
    InvalidQuantity,
    OverSell,
    PersistenceError,
    StalePrice,
    TradeError,
)
from folio_core.trade import Side, TradeRequest
from folio_core.ledger import Account, Holding, HoldingsLedger
from folio_core.calendar import TradingCalendar
from folio_core.bars import DailyBar, load_bars
from folio_core.subscriptions import PriceSubscriptionManager
from folio_core.valuation import HoldingDailyChange, SeriesProjector, format_percent, portfolio_value
from folio_core.config import SessionConfig
from folio_core.session import PortfolioSession

__all__ = [
    "Event",
    "FeedErrorEvent",
    "PriceTick",
    "TradeEvent",
    "EventLoop",
    "FeedError",
    "FolioError",
    "InsufficientFunds",
    "InvalidQuantity",
    "OverSell",
    "PersistenceError",
    "StalePrice",
    "TradeError",
    "Side",
    "TradeRequest",
    "Account",
    "Holding",
    "HoldingsLedger",
    "TradingCalendar",
    "DailyBar",
    "load_bars",
    "PriceSubscriptionManager",
    "HoldingDailyChange",
    "SeriesProjector",
    "format_percent",
    "portfolio_value",
    "SessionConfig",
    "PortfolioSession",
]
