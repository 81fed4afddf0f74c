"""Sales charts rendered to PNG files.

Three charts over a date range, read through a ReportAggregator:
- Daily sales (line)
- Top items (quantity, horizontal bar)
- Revenue contribution (pie)

Figures are built with matplotlib's object API, so no GUI backend is needed.
"""

import os

import matplotlib
from matplotlib.figure import Figure

FIGSIZE = (6, 3.5)


def _save(fig, path):
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    fig.tight_layout()
    fig.savefig(path)
    return path


def render_daily_sales(reports, start, end, path):
    rows = reports.daily_totals(start, end)
    fig = Figure(figsize=FIGSIZE)
    ax = fig.add_subplot(111)
    if rows:
        days = [d.isoformat() for d, _ in rows]
        totals = [float(t) for _, t in rows]
        ax.plot(days, totals, marker="o", color="#1f77b4")
        ax.set_title("Daily Sales")
        ax.set_xlabel("Date")
        ax.set_ylabel("Total Sales")
        ax.tick_params(axis="x", rotation=45)
    else:
        ax.text(0.5, 0.5, "No sales in range", ha="center", va="center")
    return _save(fig, path)


def render_top_products(reports, start, end, path, limit=10):
    rows = reports.top_products(start, end, limit=limit)
    fig = Figure(figsize=FIGSIZE)
    ax = fig.add_subplot(111)
    if rows:
        names = [r.name for r in rows]
        qtys = [r.quantity for r in rows]
        ax.barh(list(reversed(names)), list(reversed(qtys)), color="#2ca02c")
        ax.set_title("Top Items (by quantity)")
        ax.set_xlabel("Quantity Sold")
    else:
        ax.text(0.5, 0.5, "No items sold in range", ha="center", va="center")
    return _save(fig, path)


def render_revenue_contribution(reports, start, end, path, limit=10):
    rows = reports.revenue_by_product(start, end, limit=limit)
    fig = Figure(figsize=FIGSIZE)
    ax = fig.add_subplot(111)
    revenues = [float(r) for _, r in rows]
    if rows and sum(revenues) > 0:
        labels = [name for name, _ in rows]
        colors = matplotlib.colormaps["Pastel1"].colors
        ax.pie(revenues, labels=labels, autopct="%1.1f%%", colors=colors)
        ax.set_title("Revenue Contribution (top products)")
    else:
        ax.text(0.5, 0.5, "No revenue data in range", ha="center", va="center")
    return _save(fig, path)


def render_all(reports, start, end, out_dir):
    """Render every chart for the range into `out_dir`; returns {chart name: png path}."""
    return {
        "daily_sales": render_daily_sales(reports, start, end, os.path.join(out_dir, "daily_sales.png")),
        "top_products": render_top_products(reports, start, end, os.path.join(out_dir, "top_products.png")),
        "revenue_contribution": render_revenue_contribution(
            reports, start, end, os.path.join(out_dir, "revenue_contribution.png")
        ),
    }
