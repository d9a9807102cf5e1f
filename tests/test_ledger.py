"""
Tests for HoldingsLedger: quantities, buying power, all-or-nothing apply.
"""

from decimal import Decimal

import pytest

from folio_core import Account, Holding, HoldingsLedger
from folio_core.errors import InsufficientFunds, InvalidQuantity


# --- Queries ---


def test_ledger_initial_state():
    ledger = HoldingsLedger(account=Account(Decimal("1000")))
    assert ledger.buying_power == Decimal("1000")
    assert ledger.positions == {}
    assert ledger.get("AAPL") == 0


def test_from_mapping_coerces_buying_power():
    ledger = HoldingsLedger.from_mapping({"AAPL": 10, "MSFT": 0}, "250.50")
    assert ledger.buying_power == Decimal("250.50")
    assert ledger.get("AAPL") == 10
    assert ledger.visible_symbols() == ["AAPL"]


def test_from_mapping_rejects_negative_quantity():
    with pytest.raises(InvalidQuantity):
        HoldingsLedger.from_mapping({"AAPL": -1}, 0)


def test_iter_yields_holdings():
    ledger = HoldingsLedger.from_mapping({"AAPL": 3, "TSLA": 0}, 0)
    assert list(ledger) == [Holding("AAPL", 3), Holding("TSLA", 0)]


# --- apply_delta ---


def test_apply_delta_creates_row():
    ledger = HoldingsLedger()
    assert ledger.apply_delta("AAPL", 5) == 5
    assert ledger.positions == {"AAPL": 5}


def test_apply_delta_to_zero_keeps_row():
    ledger = HoldingsLedger.from_mapping({"AAPL": 5}, 0)
    ledger.apply_delta("AAPL", -5)
    assert ledger.get("AAPL") == 0
    assert "AAPL" in ledger.positions
    assert ledger.visible_symbols() == []


def test_apply_delta_below_zero_raises():
    ledger = HoldingsLedger.from_mapping({"AAPL": 5}, 0)
    with pytest.raises(InvalidQuantity):
        ledger.apply_delta("AAPL", -6)
    assert ledger.get("AAPL") == 5


# --- adjust_cash ---


def test_adjust_cash_both_directions():
    ledger = HoldingsLedger(account=Account(Decimal("100")))
    assert ledger.adjust_cash(Decimal("-40")) == Decimal("60")
    assert ledger.adjust_cash(Decimal("15.25")) == Decimal("75.25")


def test_adjust_cash_overspend_raises():
    ledger = HoldingsLedger(account=Account(Decimal("100")))
    with pytest.raises(InsufficientFunds):
        ledger.adjust_cash(Decimal("-100.01"))
    assert ledger.buying_power == Decimal("100")


def test_adjust_cash_can_spend_everything():
    ledger = HoldingsLedger(account=Account(Decimal("100")))
    assert ledger.adjust_cash(-100) == Decimal("0")


# --- apply (atomic) ---


def test_apply_writes_both():
    ledger = HoldingsLedger.from_mapping({"AAPL": 10}, 1000)
    assert ledger.apply("AAPL", 5, Decimal("-100")) == (15, Decimal("900"))
    assert ledger.get("AAPL") == 15
    assert ledger.buying_power == Decimal("900")


def test_apply_cash_failure_leaves_quantity():
    ledger = HoldingsLedger.from_mapping({"AAPL": 10}, 50)
    with pytest.raises(InsufficientFunds):
        ledger.apply("AAPL", 5, Decimal("-100"))
    assert ledger.get("AAPL") == 10
    assert ledger.buying_power == Decimal("50")


def test_apply_quantity_failure_leaves_cash():
    ledger = HoldingsLedger.from_mapping({"AAPL": 1}, 50)
    with pytest.raises(InvalidQuantity):
        ledger.apply("AAPL", -2, Decimal("40"))
    assert ledger.get("AAPL") == 1
    assert ledger.buying_power == Decimal("50")
