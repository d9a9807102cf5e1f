"""
Tests for PriceSubscriptionManager: idempotence, late ticks, feed errors, reconcile.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from folio_core import EventLoop, FeedErrorEvent, PriceSubscriptionManager, PriceTick
from folio_core.errors import FeedError
from folio_core.execution import PaperQuoteSource


def _manager(**kwargs):
    quotes = PaperQuoteSource()
    return PriceSubscriptionManager(quotes, clock=lambda: datetime(2024, 1, 16, 10, 0), **kwargs), quotes


# --- subscribe / unsubscribe ---


def test_subscribe_is_idempotent():
    subs, quotes = _manager()
    assert subs.subscribe("AAPL") is True
    assert subs.subscribe("AAPL") is False
    assert quotes.open_count("AAPL") == 1
    assert subs.symbols() == ["AAPL"]


def test_latest_price_unknown_until_first_tick():
    subs, quotes = _manager()
    subs.subscribe("AAPL")
    assert subs.latest_price("AAPL") is None
    quotes.push("AAPL", "101.5")
    quotes.push("AAPL", "101.7")
    assert subs.latest_price("AAPL") == Decimal("101.7")


def test_unsubscribe_never_subscribed_is_safe():
    subs, quotes = _manager()
    subs.unsubscribe("NOPE")
    subs.unsubscribe("NOPE")
    assert subs.symbols() == []


def test_resubscribe_never_has_two_feeds():
    subs, quotes = _manager()
    subs.subscribe("AAPL")
    subs.unsubscribe("AAPL")
    subs.subscribe("AAPL")
    assert quotes.open_count("AAPL") == 1
    assert quotes.opened_count == 2


def test_unsubscribe_all_releases_every_feed():
    subs, quotes = _manager()
    for sym in ("AAPL", "MSFT", "TSLA"):
        subs.subscribe(sym)
    subs.unsubscribe_all()
    subs.unsubscribe_all()
    assert quotes.open_count() == 0
    assert subs.symbols() == []


# --- Late ticks ---


def test_late_tick_after_unsubscribe_is_discarded():
    subs, quotes = _manager()
    subs.subscribe("AAPL")
    handle = quotes.open_handles("AAPL")[0]
    subs.unsubscribe("AAPL")
    handle.on_tick(Decimal("99"))
    assert subs.latest_price("AAPL") is None
    assert not subs.is_subscribed("AAPL")


def test_late_tick_from_old_feed_does_not_touch_new_subscription():
    subs, quotes = _manager()
    subs.subscribe("AAPL")
    old = quotes.open_handles("AAPL")[0]
    subs.unsubscribe("AAPL")
    subs.subscribe("AAPL")
    quotes.push("AAPL", 10)
    old.on_tick(Decimal("5"))
    assert subs.latest_price("AAPL") == Decimal("10")


# --- Feed errors ---


def test_feed_error_keeps_last_price_and_flags_stale():
    events = EventLoop()
    seen = []
    events.subscribe(seen.append)
    subs, quotes = _manager(events=events)
    subs.subscribe("AAPL")
    subs.subscribe("MSFT")
    quotes.push("AAPL", 100)
    quotes.push("MSFT", 300)
    quotes.fail("AAPL")
    assert subs.latest_price("AAPL") == Decimal("100")
    assert subs.is_stale("AAPL")
    assert not subs.is_stale("MSFT")
    assert subs.is_subscribed("AAPL")
    errors = [e for e in seen if isinstance(e, FeedErrorEvent)]
    assert len(errors) == 1
    assert errors[0].symbol == "AAPL"
    assert errors[0].last_price == Decimal("100")
    assert isinstance(errors[0].error, FeedError)


def test_tick_after_error_clears_stale():
    subs, quotes = _manager()
    subs.subscribe("AAPL")
    quotes.fail("AAPL")
    assert subs.is_stale("AAPL")
    assert subs.latest_price("AAPL") is None
    quotes.push("AAPL", 7)
    assert not subs.is_stale("AAPL")
    assert subs.latest_price("AAPL") == Decimal("7")


@pytest.mark.parametrize("bad", [float("nan"), "Infinity", "-inf"])
def test_non_finite_tick_treated_as_feed_error(bad):
    events = EventLoop()
    seen = []
    events.subscribe(seen.append)
    subs, quotes = _manager(events=events)
    subs.subscribe("AAPL")
    quotes.push("AAPL", 100)
    quotes.push("AAPL", bad)
    assert subs.latest_price("AAPL") == Decimal("100")
    assert subs.is_stale("AAPL")
    assert [type(e).__name__ for e in seen] == ["PriceTick", "FeedErrorEvent"]
    assert seen[-1].last_price == Decimal("100")


def test_subscribe_failure_raises_feed_error():
    subs, quotes = _manager()
    quotes.set_unavailable("AAPL")
    with pytest.raises(FeedError):
        subs.subscribe("AAPL")
    assert not subs.is_subscribed("AAPL")


def test_ticks_dispatched_as_events():
    events = EventLoop()
    seen = []
    events.subscribe(seen.append)
    subs, quotes = _manager(events=events)
    subs.subscribe("AAPL")
    quotes.push("AAPL", 1)
    quotes.push("AAPL", 2)
    assert [e.price for e in seen if isinstance(e, PriceTick)] == [Decimal("1"), Decimal("2")]


# --- reconcile ---


def test_reconcile_matches_positive_holdings():
    subs, quotes = _manager()
    subs.subscribe("OLD")
    failures = subs.reconcile({"AAPL": 3, "MSFT": 0, "TSLA": 1})
    assert failures == []
    assert subs.symbols() == ["AAPL", "TSLA"]
    assert quotes.open_count("OLD") == 0
    assert quotes.open_count("MSFT") == 0


def test_reconcile_continues_past_failed_feed():
    events = EventLoop()
    seen = []
    events.subscribe(seen.append)
    subs, quotes = _manager(events=events)
    quotes.set_unavailable("AAPL")
    failures = subs.reconcile({"AAPL": 3, "TSLA": 1})
    assert [f.symbol for f in failures] == ["AAPL"]
    assert subs.symbols() == ["TSLA"]
    assert [e.symbol for e in seen if isinstance(e, FeedErrorEvent)] == ["AAPL"]
