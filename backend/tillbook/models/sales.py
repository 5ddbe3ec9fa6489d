from __future__ import annotations

from sqlalchemy.dialects import sqlite

from ..extensions import db
from tillbook.time_utils import to_utc_z


class Sale(db.Model):
    """
    Completed sale header.

    Immutable once committed. total_paid is computed from the cart lines when
    the sale is built and is never recomputed from live product prices.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_sale_time", "sale_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Assigned by the database at insert time (UTC). On SQLite, values and
    # bound parameters share the CURRENT_TIMESTAMP text format (no
    # microseconds) so window comparisons stay correct at the boundary.
    sale_time = db.Column(
        db.DateTime(timezone=True).with_variant(sqlite.DATETIME(truncate_microseconds=True), "sqlite"),
        nullable=False,
        server_default=db.func.now(),
    )

    total_paid = db.Column(db.Float, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_utc_z(self.sale_time),
            "total_paid": self.total_paid,
        }


class SaleLine(db.Model):
    """Individual line items on a sale, with the price captured at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Float, nullable=False)

    sale = db.relationship("Sale", backref=db.backref("lines", lazy=True))
