import logging
from datetime import datetime, timezone
from decimal import Decimal

from errors import InsufficientStock, ProductNotFound
from models import Product, StockMovement, to_money, to_utc_iso

logger = logging.getLogger(__name__)


def _row_to_product(row):
    return Product(id=row["id"], name=row["name"], price=Decimal(row["price"]), stock=row["stock"])


def _clean_name(name):
    name = (name or "").strip()
    if not name:
        raise ValueError("Product name is required")
    return name


def _clean_price(price):
    amount = to_money(price)
    if amount < 0:
        raise ValueError(f"Price must not be negative: {price!r}")
    return amount


def _clean_stock(stock):
    if isinstance(stock, bool):
        raise ValueError(f"Invalid stock: {stock!r}")
    try:
        value = int(str(stock).strip())
    except ValueError:
        raise ValueError(f"Invalid stock: {stock!r}") from None
    if value < 0:
        raise ValueError(f"Stock must not be negative: {stock!r}")
    return value


def _now_iso():
    return to_utc_iso(datetime.now(timezone.utc))


def _log_movement(conn, product_id, change, reason, created_at=None):
    conn.execute(
        "INSERT INTO stock_movements (product_id, change, reason, created_at) VALUES (?, ?, ?, ?)",
        (product_id, change, reason, created_at or _now_iso()),
    )


class CatalogStore:
    """Product rows: price and stock for everything the counter sells."""

    def __init__(self, db):
        self.db = db

    # --- reads ---
    def get(self, product_id):
        conn = self.db.connect()
        try:
            row = conn.execute("SELECT * FROM products WHERE id = ?", (product_id,)).fetchone()
        finally:
            conn.close()
        return _row_to_product(row) if row else None

    def list_all(self):
        conn = self.db.connect()
        try:
            rows = conn.execute("SELECT * FROM products ORDER BY name, id").fetchall()
        finally:
            conn.close()
        return [_row_to_product(r) for r in rows]

    def list_available(self):
        conn = self.db.connect()
        try:
            rows = conn.execute("SELECT * FROM products WHERE stock > 0 ORDER BY name, id").fetchall()
        finally:
            conn.close()
        return [_row_to_product(r) for r in rows]

    def stock_movements(self, product_id=None):
        query = "SELECT * FROM stock_movements"
        params = []
        if product_id is not None:
            query += " WHERE product_id = ?"
            params.append(product_id)
        query += " ORDER BY id"

        conn = self.db.connect()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        return [
            StockMovement(id=r["id"], product_id=r["product_id"], change=r["change"], reason=r["reason"], created_at=r["created_at"])
            for r in rows
        ]

    # --- stock writes ---
    def apply_stock_delta(self, conn, product_id, delta, reason="sale", created_at=None):
        """Change one product's stock by `delta` on the caller's open transaction.

        Raises ProductNotFound or InsufficientStock; the caller rolls back.
        """
        row = conn.execute("SELECT stock FROM products WHERE id = ?", (product_id,)).fetchone()
        if not row:
            raise ProductNotFound(product_id)

        new_stock = row["stock"] + delta
        if new_stock < 0:
            raise InsufficientStock(product_id, row["stock"], -delta)

        cur = conn.execute(
            "UPDATE products SET stock = ? WHERE id = ? AND stock = ?",
            (new_stock, product_id, row["stock"]),
        )
        if cur.rowcount != 1:
            # row changed under us; only possible without an enclosing write lock
            raise InsufficientStock(product_id, row["stock"], -delta)
        _log_movement(conn, product_id, delta, reason, created_at)
        return new_stock

    def set_stock(self, product_id, new_stock):
        """Set stock to an absolute value and record the difference as a manual adjustment."""
        new_stock = _clean_stock(new_stock)
        with self.db.transaction() as conn:
            row = conn.execute("SELECT stock FROM products WHERE id = ?", (product_id,)).fetchone()
            if not row:
                raise ProductNotFound(product_id)
            current = row["stock"]
            delta = new_stock - current
            if delta:
                self.apply_stock_delta(conn, product_id, delta, reason="manual_adjust")
        logger.info("stock for product %s: %s -> %s", product_id, current, new_stock)
        return current, new_stock

    # --- catalog management ---
    def add_product(self, name, price, stock):
        name = _clean_name(name)
        price = _clean_price(price)
        stock = _clean_stock(stock)

        with self.db.transaction() as conn:
            cur = conn.execute(
                "INSERT INTO products (name, price, stock) VALUES (?, ?, ?)",
                (name, str(price), stock),
            )
            product_id = cur.lastrowid
            if stock:
                _log_movement(conn, product_id, stock, "initial")
        logger.info("product %s created: %s @ %s x%s", product_id, name, price, stock)
        return Product(id=product_id, name=name, price=price, stock=stock)

    def update_product(self, product_id, name, price, stock):
        name = _clean_name(name)
        price = _clean_price(price)
        stock = _clean_stock(stock)

        with self.db.transaction() as conn:
            row = conn.execute("SELECT stock FROM products WHERE id = ?", (product_id,)).fetchone()
            if not row:
                raise ProductNotFound(product_id)
            conn.execute(
                "UPDATE products SET name = ?, price = ? WHERE id = ?",
                (name, str(price), product_id),
            )
            delta = stock - row["stock"]
            if delta:
                self.apply_stock_delta(conn, product_id, delta, reason="manual_adjust")
        logger.info("product %s updated: %s @ %s x%s", product_id, name, price, stock)
        return Product(id=product_id, name=name, price=price, stock=stock)

    def delete_product(self, product_id):
        with self.db.transaction() as conn:
            cur = conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
            deleted = cur.rowcount == 1
        if deleted:
            logger.info("product %s deleted", product_id)
        return deleted
