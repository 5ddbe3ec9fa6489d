"""
Checkout Engine - atomic sale recording

WHY: A sale must either land completely (header, every line item, every
stock decrement) or not at all. The whole checkout runs under the store lock
inside one atomic() unit of work; any failure rolls back the sale header too.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Sale, SaleLine, Product
from .concurrency import atomic, lock_for_update, serialized

PRICE_TOLERANCE = 1e-9


class SaleError(Exception):
    """Raised for checkout operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class CartLine:
    """One client-submitted product/quantity/price snapshot."""
    product_id: int
    name: str
    price: float
    quantity: int

    def line_total(self) -> float:
        return self.price * self.quantity


def compute_total(lines: list[CartLine]) -> float:
    total = 0.0
    for line in lines:
        total += line.line_total()
    return total


def _validate_lines(lines: list[CartLine]) -> None:
    if not lines:
        raise SaleError("Cannot check out an empty cart")

    for i, line in enumerate(lines):
        if not isinstance(line.quantity, int) or isinstance(line.quantity, bool) or line.quantity <= 0:
            raise SaleError("Quantity must be a positive integer", details={"line": i})
        if line.price is None or line.price < 0:
            raise SaleError("Price must be non-negative", details={"line": i})


def _load_products(lines: list[CartLine]) -> dict[int, Product]:
    product_ids = sorted({line.product_id for line in lines})
    products = lock_for_update(
        db.session.query(Product).filter(
            Product.id.in_(product_ids),
            Product.is_active.is_(True),
        )
    ).all()
    by_id = {p.id: p for p in products}

    missing = [pid for pid in product_ids if pid not in by_id]
    if missing:
        raise SaleError("Product not found", details={"product_ids": missing})
    return by_id


def _validate_on_hand(lines: list[CartLine], products: dict[int, Product]) -> None:
    product_totals: dict[int, int] = {}
    for line in lines:
        product_totals[line.product_id] = product_totals.get(line.product_id, 0) + line.quantity

    insufficient = []
    for product_id, qty in product_totals.items():
        on_hand = products[product_id].stock
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "requested_quantity": qty,
                "on_hand": on_hand,
            })

    if insufficient:
        raise SaleError(
            "Insufficient stock",
            details={"items": insufficient},
        )


def _validate_prices(lines: list[CartLine], products: dict[int, Product]) -> None:
    mismatched = []
    for line in lines:
        catalog_price = products[line.product_id].price
        if abs(catalog_price - line.price) > PRICE_TOLERANCE:
            mismatched.append({
                "product_id": line.product_id,
                "cart_price": line.price,
                "catalog_price": catalog_price,
            })

    if mismatched:
        raise SaleError("Cart price does not match catalog", details={"items": mismatched})


def _record_line(sale: Sale, line: CartLine) -> None:
    db.session.add(SaleLine(
        sale_id=sale.id,
        product_id=line.product_id,
        quantity=line.quantity,
        price=line.price,
    ))
    _decrement_stock(line.product_id, line.quantity)


def _decrement_stock(product_id: int, quantity: int) -> None:
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock - quantity)
    )
    if result.rowcount == 0:
        raise SaleError("Product not found", details={"product_ids": [product_id]})


@serialized
def checkout(lines: list[CartLine]) -> dict:
    """
    Record a sale for the given cart and decrement stock.

    Returns the committed transaction:
        {"id", "date", "total_paid", "items": [cart lines as dicts]}

    Raises:
        SaleError: empty cart, bad quantity/price, unknown product,
            insufficient stock (unless ALLOW_OVERSELL), price mismatch
            (when ENFORCE_CATALOG_PRICES)
        PersistenceError: storage failure; nothing is committed
    """
    _validate_lines(lines)
    total_paid = compute_total(lines)

    with atomic():
        products = _load_products(lines)
        if not current_app.config.get("ALLOW_OVERSELL", False):
            _validate_on_hand(lines, products)
        if current_app.config.get("ENFORCE_CATALOG_PRICES", False):
            _validate_prices(lines, products)

        sale = Sale(total_paid=total_paid)
        db.session.add(sale)
        db.session.flush()  # ensure sale.id exists before line inserts

        for line in lines:
            _record_line(sale, line)

    # Committed; to_dict() reloads the server-assigned sale_time
    transaction = sale.to_dict()

    current_app.logger.info(
        "Checkout committed sale id=%s lines=%d total_paid=%.2f",
        transaction["id"], len(lines), total_paid,
    )

    transaction["items"] = [asdict(line) for line in lines]
    return transaction
