from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

# prices and totals are kept to the cent
CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convert a price-like value (Decimal, str, int or float) to a cent-quantized Decimal."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid price: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid price: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"Invalid price: {value!r}")
    return amount.quantize(CENTS)


def to_utc_iso(dt: datetime) -> str:
    """Serialize a datetime as fixed-width UTC ISO-8601 text.

    Naive values are taken as local time. The fixed microsecond precision keeps
    lexical order of stored timestamps equal to chronological order.
    """
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_iso(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


#product model
@dataclass(frozen=True, slots=True)
class Product:
    id: int
    name: str
    price: Decimal
    stock: int

    @property
    def available(self) -> bool:
        return self.stock > 0


#cart line model
class CartLine:
    """One product in an open cart; name and price are snapshots taken at add time."""

    __slots__ = ("product_id", "name", "unit_price", "quantity")

    def __init__(self, product_id, name, unit_price, quantity=1):
        self.product_id = product_id
        self.name = name
        self.unit_price = unit_price
        self.quantity = quantity

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def __repr__(self):
        return f"CartLine(product_id={self.product_id}, name={self.name!r}, unit_price={self.unit_price}, quantity={self.quantity})"


#ledger row
@dataclass(frozen=True, slots=True)
class SaleRecord:
    """Immutable ledger row for one line of a finalized sale."""

    id: int
    sale_id: int
    product_name: str
    quantity: int
    line_total: Decimal
    timestamp: str

    @property
    def sold_at(self) -> datetime:
        return parse_iso(self.timestamp)


@dataclass(frozen=True, slots=True)
class SaleLineResult:
    record_id: int
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


#finalized sale, returned by the transaction engine
@dataclass(frozen=True, slots=True)
class SaleResult:
    sale_id: int
    timestamp: str
    lines: Tuple[SaleLineResult, ...]

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))

    @property
    def sold_at(self) -> datetime:
        return parse_iso(self.timestamp)


@dataclass(frozen=True, slots=True)
class StockMovement:
    id: int
    product_id: int
    change: int
    reason: str
    created_at: str


@dataclass(frozen=True, slots=True)
class TopProduct:
    name: str
    quantity: int
