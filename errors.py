"""
Error kinds for cart edits and sale finalization.

Every error is recoverable for the caller: the cart is left as it was and can
be edited and retried. Corruption of the underlying database is not modelled
here; it propagates as the raw sqlite3 error.
"""

from __future__ import annotations


class SaleError(Exception):
    code = "SALE_ERROR"


class EmptyCart(SaleError):
    code = "EMPTY_CART"

    def __init__(self, message="Cart has no items to sell"):
        super().__init__(message)


class InsufficientStock(SaleError):
    """Stock shrank between adding to the cart and finalizing."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id, available, requested):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product {product_id}: have={available}, need={requested}"
        )


class StockExceeded(SaleError):
    """A cart edit would put more units in the cart than are in stock."""

    code = "STOCK_EXCEEDED"

    def __init__(self, product_id, stock):
        self.product_id = product_id
        self.stock = stock
        super().__init__(f"Only {stock} unit(s) of product {product_id} in stock")


class ProductNotFound(SaleError):
    code = "NOT_FOUND"

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class StoreIOError(SaleError):
    code = "IO_ERROR"

    def __init__(self, message, cause=None):
        self.cause = cause
        super().__init__(message)


class LineNotFound(SaleError):
    """The cart has no line for the product being edited."""

    code = "LINE_NOT_FOUND"

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"No cart line for product {product_id}")
