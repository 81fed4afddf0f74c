import logging
import sqlite3
import time
from datetime import datetime, timezone

from models import to_money, to_utc_iso

logger = logging.getLogger(__name__)

# Sample catalog (name, price, stock) for a fresh database
SAMPLE_PRODUCTS = [
    ("X-Salada", "15.50", 20),
    ("Refrigerante Lata", "6.00", 50),
]


def commit_with_retry(conn, retries=6, initial_delay=0.5):
    """Attempt to commit, retrying on `sqlite3.OperationalError: database is locked`.

    Retries use exponential backoff (initial_delay * 2**attempt).
    """
    last_exc = None
    for attempt in range(retries):
        try:
            conn.commit()
            return
        except sqlite3.OperationalError as e:
            last_exc = e
            msg = str(e).lower()
            if 'locked' in msg or 'busy' in msg:
                delay = initial_delay * (2 ** attempt)
                time.sleep(delay)
                continue
            raise
    # If we exhausted retries, re-raise last exception
    raise last_exc


def seed(db, products=SAMPLE_PRODUCTS):
    """Insert the sample catalog when the products table is empty. Returns the number of rows added."""
    conn = db.connect()
    try:
        count = conn.execute("SELECT COUNT(*) AS c FROM products").fetchone()["c"]
        if count:
            return 0

        created_at = to_utc_iso(datetime.now(timezone.utc))
        for name, price, stock in products:
            cur = conn.execute(
                "INSERT INTO products (name, price, stock) VALUES (?, ?, ?)",
                (name, str(to_money(price)), stock),
            )
            conn.execute(
                "INSERT INTO stock_movements (product_id, change, reason, created_at) VALUES (?, ?, 'initial', ?)",
                (cur.lastrowid, stock, created_at),
            )
        commit_with_retry(conn)
    finally:
        conn.close()

    logger.info("seeded %d sample product(s)", len(products))
    return len(products)
