from decimal import Decimal

from errors import InsufficientStock, LineNotFound, ProductNotFound, StockExceeded
from models import CartLine


#cart model
class Cart:
    """Candidate sale lines for one checkout session.

    Reads live stock from the catalog on every edit so a line's quantity never
    exceeds what is on the shelf. Never writes to any store.
    """

    def __init__(self, catalog):
        self.catalog = catalog
        self._lines = {}  # {product_id: CartLine}, insertion ordered

    def _live_stock(self, product_id):
        product = self.catalog.get(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product.stock

    # --- edits ---
    def add_or_increment(self, product):
        """Add one unit of `product`; returns the line, or None when nothing is in stock."""
        if product.id in self._lines:
            return self.increment(product.id)

        if self._live_stock(product.id) < 1:
            return None

        line = CartLine(product.id, product.name, product.price, 1)
        self._lines[product.id] = line
        return line

    def increment(self, product_id):
        line = self._lines.get(product_id)
        if line is None:
            raise LineNotFound(product_id)
        stock = self._live_stock(product_id)
        if line.quantity + 1 > stock:
            raise StockExceeded(product_id, stock)
        line.quantity += 1
        return line

    def decrement(self, product_id):
        line = self._lines.get(product_id)
        if line is None:
            return 0
        if line.quantity <= 1:
            del self._lines[product_id]
            return 0
        line.quantity -= 1
        return line.quantity

    def remove(self, product_id):
        return self._lines.pop(product_id, None) is not None

    def clear(self):
        self._lines.clear()

    # --- views ---
    @property
    def lines(self):
        return list(self._lines.values())

    @property
    def is_empty(self):
        return not self._lines

    def quantity_of(self, product_id):
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    def total(self):
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def __len__(self):
        return len(self._lines)

    def __contains__(self, product_id):
        return product_id in self._lines

    def __iter__(self):
        return iter(self.lines)

    def revalidate(self):
        """Check every line against the live catalog.

        Lines whose product was deleted are dropped and reported as
        ProductNotFound. Lines above the live stock are reported as
        InsufficientStock and left for the cashier to fix.
        """
        problems = []
        for product_id, line in list(self._lines.items()):
            product = self.catalog.get(product_id)
            if product is None:
                del self._lines[product_id]
                problems.append(ProductNotFound(product_id))
            elif line.quantity > product.stock:
                problems.append(InsufficientStock(product_id, product.stock, line.quantity))
        return problems
