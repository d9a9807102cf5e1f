"""
Holdings ledger: owned quantity per symbol plus the account's buying power.

Mutated only by the trade execution engine; every other component reads it.
Symbols that reach zero stay in the ledger with quantity 0 and are filtered
out at display time.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from folio_core.errors import InsufficientFunds, InvalidQuantity
from folio_core.trade import as_decimal


@dataclass(frozen=True)
class Holding:
    """Snapshot of one ledger row."""

    symbol: str
    quantity: int


@dataclass
class Account:
    """Cash available for purchases. One per session."""

    buying_power: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        self.buying_power = as_decimal(self.buying_power)


@dataclass
class HoldingsLedger:
    """
    Quantities and buying power. Mutable; updated by the engine on applied trades.
    """

    account: Account = field(default_factory=Account)
    positions: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, holdings: Mapping[str, int], buying_power: Decimal | int | str = 0) -> HoldingsLedger:
        """Build a ledger from a fetched symbol -> quantity mapping."""
        for symbol, qty in holdings.items():
            if qty < 0:
                raise InvalidQuantity(f"{symbol}: negative quantity {qty}")
        return cls(account=Account(as_decimal(buying_power)), positions={s: int(q) for s, q in holdings.items()})

    @property
    def buying_power(self) -> Decimal:
        return self.account.buying_power

    def get(self, symbol: str) -> int:
        """Quantity held in symbol. 0 if not present."""
        return self.positions.get(symbol, 0)

    def holding(self, symbol: str) -> Holding:
        return Holding(symbol=symbol, quantity=self.get(symbol))

    def __iter__(self) -> Iterator[Holding]:
        for symbol, qty in self.positions.items():
            yield Holding(symbol=symbol, quantity=qty)

    def visible_symbols(self) -> list[str]:
        """Symbols with a positive quantity, in insertion order."""
        return [s for s, q in self.positions.items() if q > 0]

    def _check_delta(self, symbol: str, delta: int) -> int:
        new_qty = self.get(symbol) + delta
        if new_qty < 0:
            raise InvalidQuantity(f"{symbol}: quantity would become {new_qty}")
        return new_qty

    def _check_cash(self, delta: Decimal) -> Decimal:
        new_cash = self.account.buying_power + delta
        if delta < 0 and new_cash < 0:
            raise InsufficientFunds(
                f"need {-delta}, buying power is {self.account.buying_power}"
            )
        return new_cash

    def apply_delta(self, symbol: str, delta: int) -> int:
        """Adjust quantity by a signed delta; creates the row if absent."""
        new_qty = self._check_delta(symbol, delta)
        self.positions[symbol] = new_qty
        return new_qty

    def adjust_cash(self, delta: Decimal) -> Decimal:
        """Add delta (positive or negative) to buying power."""
        new_cash = self._check_cash(as_decimal(delta))
        self.account.buying_power = new_cash
        return new_cash

    def apply(self, symbol: str, delta: int, cash_delta: Decimal) -> tuple[int, Decimal]:
        """
        Apply a quantity delta and a cash delta as one step. Both are checked
        before either is written, so a failure leaves the ledger untouched.
        """
        cash_delta = as_decimal(cash_delta)
        new_qty = self._check_delta(symbol, delta)
        new_cash = self._check_cash(cash_delta)
        self.positions[symbol] = new_qty
        self.account.buying_power = new_cash
        return new_qty, new_cash
