import os
import tempfile
import unittest
import sys
from decimal import Decimal
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from database import DatabaseManager
from errors import InsufficientStock, ProductNotFound
from products import CatalogStore


class CatalogTests(unittest.TestCase):
    def setUp(self):
        tf = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        tf.close()
        self.db_path = tf.name
        self.mgr = DatabaseManager(db_name=self.db_path)
        self.catalog = CatalogStore(self.mgr)

    def tearDown(self):
        for suffix in ('', '-wal', '-shm'):
            try:
                os.unlink(self.db_path + suffix)
            except FileNotFoundError:
                pass

    def test_add_and_get_product(self):
        p = self.catalog.add_product('X-Salada', '15.5', 20)
        got = self.catalog.get(p.id)
        self.assertEqual(got.name, 'X-Salada')
        self.assertEqual(got.price, Decimal('15.50'))
        self.assertIsInstance(got.price, Decimal)
        self.assertEqual(got.stock, 20)

    def test_get_missing_returns_none(self):
        self.assertIsNone(self.catalog.get(999))

    def test_list_available_excludes_empty_stock(self):
        a = self.catalog.add_product('A', '1.00', 1)
        b = self.catalog.add_product('B', '2.00', 0)
        self.assertEqual([p.id for p in self.catalog.list_available()], [a.id])
        self.assertEqual({p.id for p in self.catalog.list_all()}, {a.id, b.id})

    def test_validation(self):
        with self.assertRaises(ValueError):
            self.catalog.add_product('  ', '1.00', 1)
        with self.assertRaises(ValueError):
            self.catalog.add_product('A', 'abc', 1)
        with self.assertRaises(ValueError):
            self.catalog.add_product('A', '-1', 1)
        with self.assertRaises(ValueError):
            self.catalog.add_product('A', '1.00', '2.5')
        with self.assertRaises(ValueError):
            self.catalog.add_product('A', '1.00', -3)
        self.assertEqual(self.catalog.list_all(), [])

    def test_set_stock_records_manual_adjustment(self):
        p = self.catalog.add_product('A', '1.00', 5)
        self.assertEqual(self.catalog.set_stock(p.id, 2), (5, 2))
        self.assertEqual(self.catalog.get(p.id).stock, 2)
        moves = self.catalog.stock_movements(p.id)
        self.assertEqual([(m.change, m.reason) for m in moves], [(5, 'initial'), (-3, 'manual_adjust')])

    def test_set_stock_rejects_negative_and_missing(self):
        p = self.catalog.add_product('A', '1.00', 5)
        with self.assertRaises(ValueError):
            self.catalog.set_stock(p.id, -1)
        with self.assertRaises(ProductNotFound):
            self.catalog.set_stock(999, 1)

    def test_update_product(self):
        p = self.catalog.add_product('A', '1.00', 5)
        self.catalog.update_product(p.id, 'A2', '3.25', 7)
        got = self.catalog.get(p.id)
        self.assertEqual((got.name, got.price, got.stock), ('A2', Decimal('3.25'), 7))
        with self.assertRaises(ProductNotFound):
            self.catalog.update_product(999, 'Z', '1', 1)

    def test_delete_product(self):
        p = self.catalog.add_product('A', '1.00', 5)
        self.assertTrue(self.catalog.delete_product(p.id))
        self.assertFalse(self.catalog.delete_product(p.id))
        self.assertIsNone(self.catalog.get(p.id))

    def test_apply_stock_delta_never_goes_negative(self):
        p = self.catalog.add_product('A', '1.00', 2)
        with self.assertRaises(InsufficientStock) as ctx:
            with self.mgr.transaction() as conn:
                self.catalog.apply_stock_delta(conn, p.id, -3)
        self.assertEqual(ctx.exception.available, 2)
        self.assertEqual(ctx.exception.requested, 3)
        self.assertEqual(self.catalog.get(p.id).stock, 2)

        with self.mgr.transaction() as conn:
            self.assertEqual(self.catalog.apply_stock_delta(conn, p.id, -2), 0)
        self.assertEqual(self.catalog.get(p.id).stock, 0)

    def test_apply_stock_delta_missing_product(self):
        with self.assertRaises(ProductNotFound):
            with self.mgr.transaction() as conn:
                self.catalog.apply_stock_delta(conn, 42, -1)


if __name__ == '__main__':
    unittest.main()
