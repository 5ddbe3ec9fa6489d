# Overview: Flask API routes for product operations; parses input and returns JSON responses.

# backend/tillbook/routes/products.py
"""
Product management routes (inventory manager).

Bodies for create/update carry name, price and stock; all three are required
on both, matching the overwrite semantics of update_product().
"""
from flask import Blueprint, request, current_app

from ..services import products_service
from ..services.products_service import ProductNotFoundError
from ..services.concurrency import PersistenceError
from ..validation import validate_product_payload, ValidationError

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """List all products."""
    try:
        products = products_service.list_products()
    except PersistenceError:
        current_app.logger.exception("Failed to list products")
        return {"error": "Failed to load products"}, 500

    return {
        "items": products,
        "count": len(products),
    }


@products_bp.post("")
def create_product_route():
    """Create a new product."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_product_payload(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(**patch)
    except PersistenceError:
        current_app.logger.exception("Failed to create product")
        return {"error": "Failed to save product"}, 500

    return created, 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    """Update a product."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_product_payload(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = products_service.update_product(product_id=product_id, **patch)
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404
    except PersistenceError:
        current_app.logger.exception("Failed to update product")
        return {"error": "Failed to save product"}, 500

    return updated, 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """Delete a product."""
    try:
        products_service.delete_product(product_id=product_id)
    except ProductNotFoundError as e:
        return {"error": str(e)}, 404
    except PersistenceError:
        current_app.logger.exception("Failed to delete product")
        return {"error": "Failed to delete product"}, 500

    return {"ok": True}, 200
