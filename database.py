import logging
import os
import sqlite3
from contextlib import contextmanager

logger = logging.getLogger(__name__)

# Use a DB file located next to this module so the application uses a consistent
# database file regardless of the current working directory when launched.
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DB_NAME = os.path.join(BASE_DIR, "counter_ledger.db")

# busy_timeout in milliseconds; writers wait this long for the write lock
BUSY_TIMEOUT_MS = 30000


class DatabaseManager:
    """Handle on one SQLite database file.

    Every operation opens its own connection, so the database must live in a
    file; an in-memory database would be empty on each new connection.
    """

    def __init__(self, db_name=DB_NAME, busy_timeout_ms=BUSY_TIMEOUT_MS):
        if not db_name or str(db_name) == ":memory:" or str(db_name).startswith("file::memory:"):
            raise ValueError("DatabaseManager needs a database file path, not an in-memory database")
        self.db_name = db_name
        self.busy_timeout_ms = busy_timeout_ms
        self.check_schema()

    def connect(self):
        conn = sqlite3.connect(self.db_name, timeout=self.busy_timeout_ms / 1000)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self):
        """Yield a connection inside a single write transaction.

        BEGIN IMMEDIATE takes the database write lock up front, so every read
        done through the yielded connection sees state no other writer can
        change before the commit. Any exception rolls the whole unit back.
        """
        conn = self.connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def check_schema(self):
        conn = self.connect()
        try:
            c = conn.cursor()
            # WAL lets report readers run while a sale is being written
            c.execute("PRAGMA journal_mode=WAL")
            c.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")

            # Products; price is decimal text, stock can never go negative
            c.execute('''CREATE TABLE IF NOT EXISTS products (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                price TEXT NOT NULL,
                stock INTEGER NOT NULL CHECK (stock >= 0)
            )''')

            # Sales (one row per finalized cart)
            c.execute('''CREATE TABLE IF NOT EXISTS sales (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                total TEXT NOT NULL
            )''')

            # Sale records (append-only ledger, one row per cart line)
            c.execute('''CREATE TABLE IF NOT EXISTS sale_records (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                sale_id INTEGER NOT NULL,
                product_id INTEGER,
                product_name TEXT NOT NULL,
                quantity INTEGER NOT NULL CHECK (quantity >= 1),
                line_total TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                FOREIGN KEY(sale_id) REFERENCES sales(id)
            )''')
            c.execute('''CREATE INDEX IF NOT EXISTS idx_sale_records_timestamp
                ON sale_records (timestamp)''')

            # Stock Movements; product_id is kept after a product is deleted
            c.execute('''CREATE TABLE IF NOT EXISTS stock_movements (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                product_id INTEGER NOT NULL,
                change INTEGER NOT NULL,
                reason TEXT NOT NULL,
                created_at TEXT NOT NULL
            )''')

            conn.commit()
        finally:
            conn.close()
        logger.debug("schema ready in %s", self.db_name)

    def table_names(self):
        conn = self.connect()
        try:
            rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        finally:
            conn.close()
        return {r["name"] for r in rows}
