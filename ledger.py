"""
Ledger store (persistence).

Append-only history of sale lines. Nothing here updates or deletes a sale
record; writes happen only through `create_sale` and `append`, on a
connection whose transaction is owned by the sale engine.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from errors import StoreIOError
from models import CENTS, SaleLineResult, SaleRecord, SaleResult, TopProduct, to_utc_iso

logger = logging.getLogger(__name__)


def _bound(value):
    """Accept a datetime or an already-serialized ISO string as a range bound."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return to_utc_iso(value)
    raise TypeError(f"Unsupported timestamp bound: {type(value)!r}")


def _row_to_record(row) -> SaleRecord:
    return SaleRecord(
        id=row["id"],
        sale_id=row["sale_id"],
        product_name=row["product_name"],
        quantity=row["quantity"],
        line_total=Decimal(row["line_total"]),
        timestamp=row["timestamp"],
    )


def _where(since=None, until=None, product_name=None):
    clauses = []
    params = []
    since = _bound(since)
    until = _bound(until)
    if since is not None:
        clauses.append("timestamp >= ?")
        params.append(since)
    if until is not None:
        clauses.append("timestamp < ?")
        params.append(until)
    if product_name is not None:
        clauses.append("product_name = ?")
        params.append(product_name)
    sql = (" WHERE " + " AND ".join(clauses)) if clauses else ""
    return sql, params


class LedgerStore:
    def __init__(self, db):
        self.db = db

    def _fetchall(self, sql, params=()):
        conn = self.db.connect()
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    # --- writes (caller's transaction) ---
    def create_sale(self, conn, timestamp: str, total: Decimal) -> int:
        try:
            cur = conn.execute("INSERT INTO sales (timestamp, total) VALUES (?, ?)", (timestamp, str(total)))
        except (sqlite3.OperationalError, sqlite3.IntegrityError) as e:
            raise StoreIOError(f"Failed to record sale: {e}", e) from e
        return cur.lastrowid

    def append(
        self,
        conn,
        sale_id: int,
        timestamp: str,
        lines: Iterable[Tuple[Optional[int], str, int, Decimal]],
    ) -> List[SaleRecord]:
        """
        Insert one record per `(product_id, product_name, quantity, line_total)`.

        Every record gets the same `timestamp` and `sale_id`. Returns the
        records with their assigned ids, in input order.
        """

        records: List[SaleRecord] = []
        try:
            for product_id, product_name, quantity, line_total in lines:
                cur = conn.execute(
                    "INSERT INTO sale_records (sale_id, product_id, product_name, quantity, line_total, timestamp) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (sale_id, product_id, product_name, quantity, str(line_total), timestamp),
                )
                records.append(
                    SaleRecord(
                        id=cur.lastrowid,
                        sale_id=sale_id,
                        product_name=product_name,
                        quantity=quantity,
                        line_total=line_total,
                        timestamp=timestamp,
                    )
                )
        except (sqlite3.OperationalError, sqlite3.IntegrityError) as e:
            raise StoreIOError(f"Failed to append sale records: {e}", e) from e
        return records

    # --- reads ---
    def query(self, since=None, until=None, product_name=None, newest_first=True, limit=None) -> List[SaleRecord]:
        """
        Filtered read of sale records.

        Args:
            since: inclusive lower timestamp bound (datetime or ISO text)
            until: exclusive upper timestamp bound
            product_name: exact product name match
            newest_first: order by timestamp, then id, descending when True
            limit: maximum number of rows, None for all
        """

        where, params = _where(since, until, product_name)
        direction = "DESC" if newest_first else "ASC"
        sql = f"SELECT * FROM sale_records{where} ORDER BY timestamp {direction}, id {direction}"
        if limit is not None:
            if limit < 0:
                raise ValueError("limit must be >= 0")
            sql += " LIMIT ?"
            params.append(limit)
        return [_row_to_record(r) for r in self._fetchall(sql, params)]

    def count(self, since=None, until=None) -> int:
        where, params = _where(since, until)
        row = self._fetchall(f"SELECT COUNT(*) AS c FROM sale_records{where}", params)[0]
        return row["c"]

    def sales_count(self) -> int:
        return self._fetchall("SELECT COUNT(*) AS c FROM sales")[0]["c"]

    def total(self, since=None, until=None) -> Decimal:
        where, params = _where(since, until)
        rows = self._fetchall(f"SELECT line_total FROM sale_records{where}", params)
        return sum((Decimal(r["line_total"]) for r in rows), Decimal("0"))

    def quantity_by_product(self, since=None, until=None, limit=None) -> List[TopProduct]:
        where, params = _where(since, until)
        sql = (
            f"SELECT product_name, SUM(quantity) AS qty FROM sale_records{where} "
            "GROUP BY product_name ORDER BY qty DESC, product_name ASC"
        )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return [TopProduct(name=r["product_name"], quantity=r["qty"]) for r in self._fetchall(sql, params)]

    def top_product(self, since=None, until=None) -> Optional[TopProduct]:
        ranked = self.quantity_by_product(since, until, limit=1)
        return ranked[0] if ranked else None

    def revenue_by_product(self, since=None, until=None, limit=None) -> List[Tuple[str, Decimal]]:
        # summed in Python so money never passes through SQLite floats
        where, params = _where(since, until)
        rows = self._fetchall(f"SELECT product_name, line_total FROM sale_records{where}", params)
        revenue = {}
        for r in rows:
            revenue[r["product_name"]] = revenue.get(r["product_name"], Decimal("0")) + Decimal(r["line_total"])
        ranked = sorted(revenue.items(), key=lambda kv: (-kv[1], kv[0]))
        return ranked[:limit] if limit is not None else ranked

    def get_sale(self, sale_id) -> Optional[SaleResult]:
        header = self._fetchall("SELECT * FROM sales WHERE id = ?", (sale_id,))
        if not header:
            return None
        rows = self._fetchall("SELECT * FROM sale_records WHERE sale_id = ? ORDER BY id", (sale_id,))
        lines = tuple(
            SaleLineResult(
                record_id=r["id"],
                product_id=r["product_id"],
                product_name=r["product_name"],
                quantity=r["quantity"],
                unit_price=(Decimal(r["line_total"]) / r["quantity"]).quantize(CENTS),
                line_total=Decimal(r["line_total"]),
            )
            for r in rows
        )
        return SaleResult(sale_id=header[0]["id"], timestamp=header[0]["timestamp"], lines=lines)
