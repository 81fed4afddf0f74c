"""
Read-only reports over the sale ledger.

Day boundaries are computed in the timezone of the reference datetime and
converted to UTC before querying, since the ledger stores UTC timestamps.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from models import SaleRecord, TopProduct, parse_iso

DEFAULT_RECENT_LIMIT = 10


def _local(reference) -> datetime:
    """Normalize a date / naive datetime / aware datetime / None to an aware datetime."""
    if reference is None:
        return datetime.now().astimezone()
    if isinstance(reference, datetime):
        return reference if reference.tzinfo is not None else reference.astimezone()
    if isinstance(reference, date):
        return datetime.combine(reference, time()).astimezone()
    raise TypeError(f"Unsupported reference date: {type(reference)!r}")


def day_bounds(reference=None) -> Tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of the reference's calendar day, in its own timezone."""
    ref = _local(reference)
    tz = ref.tzinfo
    day = ref.date()
    start = datetime.combine(day, time(), tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time(), tzinfo=tz)
    return start, end


class ReportAggregator:
    def __init__(self, ledger):
        self.ledger = ledger

    def recent_sales(self, limit=DEFAULT_RECENT_LIMIT) -> List[SaleRecord]:
        """Newest records first; `limit=None` returns the whole ledger."""
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")
        return self.ledger.query(newest_first=True, limit=limit)

    def all_time_total(self) -> Decimal:
        return self.ledger.total()

    def today_total(self, reference=None) -> Decimal:
        start, end = day_bounds(reference)
        return self.ledger.total(since=start, until=end)

    def today_top_product(self, reference=None) -> Optional[TopProduct]:
        """Best seller by quantity for the reference day; ties go to the lexically first name."""
        start, end = day_bounds(reference)
        return self.ledger.top_product(since=start, until=end)

    def sales_count(self) -> int:
        return self.ledger.sales_count()

    # --- range reports (charts) ---
    def daily_totals(self, start, end) -> List[Tuple[date, Decimal]]:
        """Revenue per local calendar day from `start` through `end`, both dates inclusive."""
        since, _ = day_bounds(start)
        _, until = day_bounds(end)
        tz = since.tzinfo
        totals = {}
        for record in self.ledger.query(since=since, until=until, newest_first=False):
            day = parse_iso(record.timestamp).astimezone(tz).date()
            totals[day] = totals.get(day, Decimal("0")) + record.line_total
        return sorted(totals.items())

    def top_products(self, start, end, limit=10) -> List[TopProduct]:
        since, _ = day_bounds(start)
        _, until = day_bounds(end)
        return self.ledger.quantity_by_product(since=since, until=until, limit=limit)

    def revenue_by_product(self, start, end, limit=10) -> List[Tuple[str, Decimal]]:
        since, _ = day_bounds(start)
        _, until = day_bounds(end)
        return self.ledger.revenue_by_product(since=since, until=until, limit=limit)
