"""Application assembly: owns the database handle and wires the core services together."""

import logging

import inserting
from cart import Cart
from database import DB_NAME, DatabaseManager
from ledger import LedgerStore
from products import CatalogStore
from reports import ReportAggregator
from transactions import SaleEngine

logger = logging.getLogger(__name__)


class PointOfSale:
    """Everything one counter session needs, built around a single database file."""

    def __init__(self, db):
        self.db = db
        self.catalog = CatalogStore(db)
        self.ledger = LedgerStore(db)
        self.cart = Cart(self.catalog)
        self.engine = SaleEngine(db, self.catalog, self.ledger)
        self.reports = ReportAggregator(self.ledger)

    def checkout(self, now=None):
        return self.engine.checkout(self.cart, now=now)


def create_app(db_name=DB_NAME, seed_if_empty=True):
    # Prepare DB (create schema and seed if empty) before handing out services
    db = DatabaseManager(db_name=db_name)
    if seed_if_empty:
        inserting.seed(db)
    logger.info("point of sale ready on %s", db_name)
    return PointOfSale(db)
