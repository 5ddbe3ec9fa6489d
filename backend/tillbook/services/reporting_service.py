# Overview: Service-layer operations for reporting; read-only aggregation over sales history.

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func

from tillbook.extensions import db
from tillbook.models import Sale, SaleLine, Product
from tillbook.services.concurrency import serialized
from tillbook.time_utils import local_day_start_utc

# Rolling windows, in days back from today (inclusive of the current day)
REVENUE_WINDOWS = {
    "daily": 0,
    "weekly": 6,
    "monthly": 29,
}


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


@serialized
def list_transactions() -> list[dict]:
    """
    All sales, newest first, each annotated with the names of products sold.

    Names come from a join to products, so a product removed from the table
    contributes no name.
    """
    sales = (
        db.session.query(Sale)
        .order_by(Sale.sale_time.desc(), Sale.id.desc())
        .all()
    )

    names_by_sale: dict[int, list[str]] = {}
    rows = (
        db.session.query(SaleLine.sale_id, Product.name)
        .join(Product, SaleLine.product_id == Product.id)
        .order_by(SaleLine.id.asc())
        .all()
    )
    for sale_id, name in rows:
        names_by_sale.setdefault(sale_id, []).append(name)

    return [
        {**sale.to_dict(), "items": names_by_sale.get(sale.id, [])}
        for sale in sales
    ]


def _performance_query():
    sales_count = func.coalesce(func.sum(SaleLine.quantity), 0)
    revenue = func.coalesce(func.sum(SaleLine.quantity * SaleLine.price), 0)

    return (
        db.session.query(
            Product.id.label("id"),
            Product.name.label("name"),
            sales_count.label("sales_count"),
            revenue.label("revenue"),
            Product.stock.label("stock"),
        )
        .outerjoin(SaleLine, SaleLine.product_id == Product.id)
        .filter(Product.is_active.is_(True))
        .group_by(Product.id, Product.name, Product.stock)
        .order_by(Product.id.asc())
    )


def _performance_rows(query) -> list[dict]:
    return [
        {
            "id": row.id,
            "name": row.name,
            "sales_count": int(row.sales_count or 0),
            "revenue": float(row.revenue or 0),
            "stock": int(row.stock),
        }
        for row in query.all()
    ]


@serialized
def product_performance() -> list[dict]:
    """
    Per active product: units sold, revenue from line-item snapshots, stock.

    Products with no sales still appear with zero counts.
    """
    return _performance_rows(_performance_query())


@serialized
def low_stock_products(threshold: int | None = None) -> list[dict]:
    """Same shape as product_performance(), limited to stock < threshold."""
    if threshold is None:
        threshold = int(current_app.config.get("LOW_STOCK_THRESHOLD", 5))
    if threshold < 0:
        raise ReportError("threshold must be >= 0")

    query = _performance_query().filter(Product.stock < threshold)
    return _performance_rows(query)


@serialized
def revenue_overview(now: datetime | None = None) -> dict:
    """
    Sums of total_paid for today, the last 7 days and the last 30 days.

    Window boundaries are local-day starts; each window includes today.
    """
    overview = {}
    for label, days_back in REVENUE_WINDOWS.items():
        since = local_day_start_utc(days_back, now=now)
        total = (
            db.session.query(func.coalesce(func.sum(Sale.total_paid), 0))
            .filter(Sale.sale_time >= since)
            .scalar()
        )
        overview[label] = float(total or 0)
    return overview
