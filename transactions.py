import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from errors import EmptyCart, SaleError, StoreIOError
from models import SaleLineResult, SaleResult, to_utc_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FinalizeResult:
    """Outcome of a finalize: exactly one of `sale` / `error` is set."""

    sale: Optional[SaleResult] = None
    error: Optional[SaleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> SaleResult:
        if self.error is not None:
            raise self.error
        return self.sale


class SaleEngine:
    """Sole writer that turns a cart into stock decrements and ledger rows."""

    def __init__(self, db, catalog, ledger):
        self.db = db
        self.catalog = catalog
        self.ledger = ledger

    def finalize(self, cart, now=None) -> FinalizeResult:
        """
        Record every line of `cart` as one sale, or nothing at all.

        Stock is re-read inside the write transaction, so a shelf that shrank
        after the items were added is caught here. Line totals use the prices
        the cart captured when each line was added. The cart itself is never
        modified.
        """

        lines = cart.lines
        if not lines:
            return FinalizeResult(error=EmptyCart())

        timestamp = to_utc_iso(now if now is not None else datetime.now(timezone.utc))

        # one stock update per distinct product
        requested = {}
        for line in lines:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        try:
            with self.db.transaction() as conn:
                for product_id, qty in requested.items():
                    self.catalog.apply_stock_delta(conn, product_id, -qty, reason="sale", created_at=timestamp)

                sale_id = self.ledger.create_sale(conn, timestamp, cart.total())
                records = self.ledger.append(
                    conn,
                    sale_id,
                    timestamp,
                    [(line.product_id, line.name, line.quantity, line.line_total) for line in lines],
                )
        except SaleError as e:
            logger.warning("sale rejected: %s", e)
            return FinalizeResult(error=e)
        except (sqlite3.OperationalError, sqlite3.IntegrityError) as e:
            logger.exception("sale failed in store")
            return FinalizeResult(error=StoreIOError(f"Transaction failed: {e}", e))

        sale = SaleResult(
            sale_id=sale_id,
            timestamp=timestamp,
            lines=tuple(
                SaleLineResult(
                    record_id=record.id,
                    product_id=line.product_id,
                    product_name=line.name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=record.line_total,
                )
                for line, record in zip(lines, records)
            ),
        )
        logger.info("sale %s committed: %d line(s), total=%s", sale.sale_id, len(sale.lines), sale.total)
        return FinalizeResult(sale=sale)

    def checkout(self, cart, now=None) -> FinalizeResult:
        result = self.finalize(cart, now=now)
        if result.ok:
            cart.clear()
        return result
