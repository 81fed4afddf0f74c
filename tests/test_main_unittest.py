import os
import tempfile
import unittest
import sys
from decimal import Decimal
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import main


class AppTests(unittest.TestCase):
    def setUp(self):
        tf = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        tf.close()
        self.db_path = tf.name

    def tearDown(self):
        for suffix in ('', '-wal', '-shm'):
            try:
                os.unlink(self.db_path + suffix)
            except FileNotFoundError:
                pass

    def test_create_app_seeds_and_sells(self):
        app = main.create_app(db_name=self.db_path)
        available = app.catalog.list_available()
        self.assertEqual(len(available), 2)

        for product in available:
            app.cart.add_or_increment(product)
        self.assertEqual(app.cart.total(), Decimal('21.50'))

        result = app.checkout()
        self.assertTrue(result.ok)
        self.assertTrue(app.cart.is_empty)
        self.assertEqual(app.reports.all_time_total(), Decimal('21.50'))
        self.assertEqual(app.reports.today_total(result.sale.sold_at), Decimal('21.50'))

    def test_create_app_without_seed(self):
        app = main.create_app(db_name=self.db_path, seed_if_empty=False)
        self.assertEqual(app.catalog.list_all(), [])
        self.assertFalse(app.checkout().ok)


if __name__ == '__main__':
    unittest.main()
