import os
import sqlite3
import tempfile
import unittest
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from database import DatabaseManager


def _unlink_db(path):
    for suffix in ('', '-wal', '-shm'):
        try:
            os.unlink(path + suffix)
        except FileNotFoundError:
            pass


class DatabaseTests(unittest.TestCase):
    def setUp(self):
        tf = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        tf.close()
        self.db_path = tf.name
        self.mgr = DatabaseManager(db_name=self.db_path)

    def tearDown(self):
        _unlink_db(self.db_path)

    def test_check_schema_creates_tables(self):
        expected = {'products', 'sales', 'sale_records', 'stock_movements'}
        self.assertTrue(expected.issubset(self.mgr.table_names()))

    def test_check_schema_is_idempotent(self):
        DatabaseManager(db_name=self.db_path)
        self.assertIn('products', self.mgr.table_names())

    def test_in_memory_database_rejected(self):
        with self.assertRaises(ValueError):
            DatabaseManager(db_name=':memory:')

    def test_transaction_commits(self):
        with self.mgr.transaction() as conn:
            conn.execute("INSERT INTO products (name, price, stock) VALUES (?,?,?)", ('P', '1.00', 3))
        conn = self.mgr.connect()
        row = conn.execute("SELECT stock FROM products WHERE name='P'").fetchone()
        conn.close()
        self.assertEqual(row['stock'], 3)

    def test_transaction_rolls_back_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.mgr.transaction() as conn:
                conn.execute("INSERT INTO products (name, price, stock) VALUES (?,?,?)", ('P', '1.00', 3))
                raise RuntimeError('boom')
        conn = self.mgr.connect()
        count = conn.execute("SELECT COUNT(*) FROM products").fetchone()[0]
        conn.close()
        self.assertEqual(count, 0)

    def test_negative_stock_rejected_by_schema(self):
        with self.assertRaises(sqlite3.IntegrityError):
            with self.mgr.transaction() as conn:
                conn.execute("INSERT INTO products (name, price, stock) VALUES (?,?,?)", ('P', '1.00', -1))


if __name__ == '__main__':
    unittest.main()
