import os
import tempfile
import unittest
import sys
from decimal import Decimal
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from PIL import Image

from models import SaleLineResult, SaleResult, to_money
from receipt import ReceiptGenerator


def _sale(lines):
    return SaleResult(sale_id=7, timestamp='2026-10-19T15:00:00.000000+00:00', lines=tuple(lines))


class ReceiptTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_generate_receipt_creates_file(self):
        sale = _sale([
            SaleLineResult(1, 1, 'X-Salada', 2, Decimal('15.50'), Decimal('31.00')),
            SaleLineResult(2, 2, 'Refrigerante Lata', 1, Decimal('6.00'), Decimal('6.00')),
        ])
        png = ReceiptGenerator.generate(sale, receipts_dir=self.tmpdir.name)
        self.assertTrue(os.path.exists(png))
        self.assertEqual(os.path.basename(png), 'sale-000007.png')
        with Image.open(png) as img:
            self.assertEqual(img.format, 'PNG')

    def test_generate_receipt_long_item_name(self):
        long_name = 'LongName ' * 40
        sale = _sale([SaleLineResult(1, 1, long_name, 2, Decimal('123.45'), Decimal('246.90'))])
        png = ReceiptGenerator.generate(sale, receipts_dir=self.tmpdir.name)
        self.assertTrue(os.path.exists(png))

    def test_sale_total(self):
        sale = _sale([
            SaleLineResult(1, 1, 'A', 3, Decimal('0.10'), Decimal('0.30')),
            SaleLineResult(2, 2, 'B', 1, Decimal('0.20'), Decimal('0.20')),
        ])
        self.assertEqual(sale.total, Decimal('0.50'))

    def test_to_money(self):
        self.assertEqual(to_money('15.5'), Decimal('15.50'))
        self.assertEqual(to_money(6), Decimal('6.00'))
        self.assertEqual(to_money(0.1), Decimal('0.10'))
        for bad in ('abc', '', 'NaN', True):
            with self.assertRaises(ValueError):
                to_money(bad)


if __name__ == '__main__':
    unittest.main()
