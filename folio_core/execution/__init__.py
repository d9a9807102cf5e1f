"""
Execution layer: trade execution engine, result types and collaborators.

Collaborator interfaces (quotes, history, holdings storage) plus in-memory
paper implementations for simulation and tests.
"""

from folio_core.execution.sources import FeedHandle, HistorySource, HoldingsStore, QuoteSource
from folio_core.execution.paper import InMemoryHoldingsStore, PaperQuoteSource, StaticHistorySource
from folio_core.execution.engine import TradeExecutionEngine
from folio_core.execution.types import Applied, Rejected, RejectReason, TradeResult

__all__ = [
    "FeedHandle",
    "HistorySource",
    "HoldingsStore",
    "QuoteSource",
    "InMemoryHoldingsStore",
    "PaperQuoteSource",
    "StaticHistorySource",
    "TradeExecutionEngine",
    "Applied",
    "Rejected",
    "RejectReason",
    "TradeResult",
]
