# backend/tillbook/services/products_service.py
"""
Products Service (inventory manager)

CRUD over the product catalog. Inputs are assumed validated at the route
boundary (see validation.enforce_rules_product).

DELETION: Products referenced by sale lines are deactivated instead of
removed, so transaction history keeps their names. Deactivated products are
hidden from listings and behave as not found for update/delete/checkout.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, SaleLine
from .concurrency import serialized, atomic


class ProductNotFoundError(Exception):
    """Raised when an update/delete target does not exist."""
    pass


def _active_product(product_id: int) -> Product | None:
    return (
        db.session.query(Product)
        .filter(Product.id == product_id, Product.is_active.is_(True))
        .first()
    )


@serialized
def list_products() -> list[dict]:
    """All active products in storage order (by id)."""
    products = (
        db.session.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.id.asc())
        .all()
    )
    return [p.to_dict() for p in products]


@serialized
def get_product(product_id: int) -> dict | None:
    p = _active_product(product_id)
    return p.to_dict() if p else None


@serialized
def create_product(*, name: str, price: float, stock: int) -> dict:
    """Insert a product and return it with its new id."""
    p = Product(name=name, price=price, stock=stock, is_active=True)
    with atomic():
        db.session.add(p)
        db.session.flush()  # ensure p.id exists before logging

    current_app.logger.info("Created product id=%s name=%r", p.id, p.name)
    return p.to_dict()


@serialized
def update_product(*, product_id: int, name: str, price: float, stock: int) -> dict:
    """
    Overwrite name, price and stock of an existing product.

    Raises:
        ProductNotFoundError: If no active product has this id
    """
    p = _active_product(product_id)
    if p is None:
        raise ProductNotFoundError("Product not found")

    with atomic():
        p.name = name
        p.price = price
        p.stock = stock

    current_app.logger.info("Updated product id=%s", product_id)
    return p.to_dict()


@serialized
def delete_product(*, product_id: int) -> None:
    """
    Delete a product.

    Soft-deletes when sale history references the product, hard-deletes
    otherwise.

    Raises:
        ProductNotFoundError: If no active product has this id
    """
    p = _active_product(product_id)
    if p is None:
        raise ProductNotFoundError("Product not found")

    referenced = (
        db.session.query(SaleLine.id)
        .filter(SaleLine.product_id == product_id)
        .first()
        is not None
    )

    with atomic():
        if referenced:
            p.is_active = False
        else:
            db.session.delete(p)

    current_app.logger.info(
        "%s product id=%s",
        "Deactivated" if referenced else "Deleted",
        product_id,
    )
