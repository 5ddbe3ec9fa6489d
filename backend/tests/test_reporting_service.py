"""
Reporting engine tests.

Verifies:
- transactions are newest first and carry product names
- performance revenue comes from line snapshots, not live prices
- low-stock filtering honours the configured threshold
- revenue windows nest: daily <= weekly <= monthly
- window edges follow local midnight and include their first instant
"""

import time
from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from tillbook.extensions import db
from tillbook.models import Sale, SaleLine
from tillbook.services import reporting_service, sales_service, products_service
from tillbook.services.sales_service import CartLine
from tillbook.time_utils import local_day_start_utc, utcnow


def _sell(product, quantity, price=None):
    return sales_service.checkout([
        CartLine(
            product_id=product.id,
            name=product.name,
            price=product.price if price is None else price,
            quantity=quantity,
        )
    ])


def _sale_at(when, total, product=None, quantity=1):
    """Insert a historical sale directly with an explicit timestamp."""
    sale = Sale(total_paid=total, sale_time=when)
    db.session.add(sale)
    db.session.flush()
    if product is not None:
        db.session.add(SaleLine(sale_id=sale.id, product_id=product.id, quantity=quantity, price=total / quantity))
    db.session.commit()
    return sale


class TestTransactions:

    def test_newest_first_with_names(self, db_session, coffee, bagel):
        now = utcnow()
        older = _sale_at(now - timedelta(hours=2), 3.5, coffee)
        newer = _sale_at(now - timedelta(hours=1), 2.25, bagel)

        items = reporting_service.list_transactions()

        assert [t["id"] for t in items] == [newer.id, older.id]
        assert items[0]["items"] == ["Bagel"]
        assert items[1]["items"] == ["Coffee"]
        assert items[0]["total_paid"] == pytest.approx(2.25)

    def test_names_listed_per_line(self, coffee, bagel):
        result = sales_service.checkout([
            CartLine(product_id=coffee.id, name="Coffee", price=3.5, quantity=1),
            CartLine(product_id=bagel.id, name="Bagel", price=2.25, quantity=1),
        ])

        items = reporting_service.list_transactions()

        assert items[0]["id"] == result["id"]
        assert items[0]["items"] == ["Coffee", "Bagel"]

    def test_deactivated_product_keeps_its_name(self, coffee):
        _sell(coffee, 1)
        products_service.delete_product(product_id=coffee.id)

        items = reporting_service.list_transactions()

        assert items[0]["items"] == ["Coffee"]

    def test_empty(self, db_session):
        assert reporting_service.list_transactions() == []


class TestProductPerformance:

    def test_zero_sale_products_included(self, coffee, bagel):
        _sell(coffee, 2)

        rows = {r["id"]: r for r in reporting_service.product_performance()}

        assert rows[coffee.id]["sales_count"] == 2
        assert rows[coffee.id]["revenue"] == pytest.approx(7.0)
        assert rows[coffee.id]["stock"] == 8
        assert rows[bagel.id] == {"id": bagel.id, "name": "Bagel", "sales_count": 0, "revenue": 0.0, "stock": 4}

    def test_revenue_ignores_later_price_change(self, coffee):
        _sell(coffee, 2)
        _sell(coffee, 1, price=3.00)
        products_service.update_product(product_id=coffee.id, name="Coffee", price=10.0, stock=7)

        row = reporting_service.product_performance()[0]

        assert row["sales_count"] == 3
        assert row["revenue"] == pytest.approx(2 * 3.5 + 3.0)

    def test_deactivated_products_hidden(self, coffee, bagel):
        _sell(coffee, 1)
        products_service.delete_product(product_id=coffee.id)

        ids = [r["id"] for r in reporting_service.product_performance()]

        assert ids == [bagel.id]


class TestLowStock:

    def test_default_threshold_is_five(self, db_session, coffee, bagel):
        rows = reporting_service.low_stock_products()

        assert [r["id"] for r in rows] == [bagel.id]

    def test_sale_can_push_product_into_low_stock(self, coffee):
        _sell(coffee, 6)

        rows = reporting_service.low_stock_products()

        assert rows[0]["id"] == coffee.id
        assert rows[0]["stock"] == 4
        assert rows[0]["sales_count"] == 6

    def test_configured_and_explicit_threshold(self, app, coffee, bagel):
        app.config["LOW_STOCK_THRESHOLD"] = 11
        assert len(reporting_service.low_stock_products()) == 2

        assert reporting_service.low_stock_products(threshold=0) == []

    def test_negative_threshold_rejected(self, db_session):
        with pytest.raises(reporting_service.ReportError):
            reporting_service.low_stock_products(threshold=-1)


class TestRevenueOverview:

    def test_empty_is_all_zero(self, db_session):
        assert reporting_service.revenue_overview() == {"daily": 0.0, "weekly": 0.0, "monthly": 0.0}

    def test_windows(self, db_session):
        now = utcnow()
        _sale_at(now, 10.0)
        _sale_at(now - timedelta(days=3), 20.0)
        _sale_at(now - timedelta(days=10), 40.0)
        _sale_at(now - timedelta(days=45), 80.0)

        overview = reporting_service.revenue_overview(now=now)

        assert overview["daily"] == pytest.approx(10.0)
        assert overview["weekly"] == pytest.approx(30.0)
        assert overview["monthly"] == pytest.approx(70.0)

    def test_windows_nest(self, coffee):
        _sell(coffee, 2)
        now = utcnow()
        _sale_at(now - timedelta(days=2), 5.0)
        _sale_at(now - timedelta(days=20), 6.0)

        overview = reporting_service.revenue_overview()

        assert overview["daily"] <= overview["weekly"] <= overview["monthly"]
        assert overview["daily"] == pytest.approx(7.0)


@pytest.fixture
def eastern_standard_time(monkeypatch):
    """Pin local time to UTC-5 with no DST."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "EST5")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


class TestRevenueWindowBoundaries:
    """
    Windows start at local midnight. With local time at UTC-5 and now at
    2026-10-19 15:00 UTC (10:00 local), today starts at 05:00 UTC.
    """

    NOW = datetime(2026, 10, 19, 15, 0, 0)

    def test_late_yesterday_local_is_not_today(self, db_session, eastern_standard_time):
        # 02:00 UTC on the 19th is 21:00 local on the 18th
        _sale_at(datetime(2026, 10, 19, 2, 0, 0), 5.0)
        _sale_at(datetime(2026, 10, 19, 6, 0, 0), 7.0)

        overview = reporting_service.revenue_overview(now=self.NOW)

        assert overview["daily"] == pytest.approx(7.0)
        assert overview["weekly"] == pytest.approx(12.0)

    def test_sale_at_local_midnight_counts_for_today(self, db_session, eastern_standard_time):
        since = local_day_start_utc(0, now=self.NOW)
        assert since == datetime(2026, 10, 19, 5, 0, 0)

        # Same text layout SQLite uses for CURRENT_TIMESTAMP
        db.session.execute(
            text("INSERT INTO sales (sale_time, total_paid) VALUES (:sale_time, :total_paid)"),
            {"sale_time": since.strftime("%Y-%m-%d %H:%M:%S"), "total_paid": 9.0},
        )
        db.session.commit()

        overview = reporting_service.revenue_overview(now=self.NOW)

        assert overview == {"daily": 9.0, "weekly": 9.0, "monthly": 9.0}

    def test_weekly_includes_day_minus_six_only(self, db_session, eastern_standard_time):
        weekly_start = local_day_start_utc(6, now=self.NOW)
        assert weekly_start == datetime(2026, 10, 13, 5, 0, 0)

        _sale_at(weekly_start, 10.0)
        _sale_at(weekly_start - timedelta(seconds=1), 20.0)

        overview = reporting_service.revenue_overview(now=self.NOW)

        assert overview["weekly"] == pytest.approx(10.0)
        assert overview["monthly"] == pytest.approx(30.0)

    def test_monthly_includes_day_minus_twenty_nine_only(self, db_session, eastern_standard_time):
        monthly_start = local_day_start_utc(29, now=self.NOW)
        assert monthly_start == datetime(2026, 9, 20, 5, 0, 0)

        _sale_at(monthly_start, 10.0)
        _sale_at(monthly_start - timedelta(seconds=1), 20.0)

        overview = reporting_service.revenue_overview(now=self.NOW)

        assert overview["daily"] == 0.0
        assert overview["monthly"] == pytest.approx(10.0)
