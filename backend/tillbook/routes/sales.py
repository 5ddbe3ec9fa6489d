# Overview: Flask API routes for checkout; parses the cart and returns the committed transaction.

from flask import Blueprint, request, jsonify, current_app

from ..services import sales_service
from ..services.sales_service import SaleError
from ..services.concurrency import PersistenceError
from ..validation import validate_cart_payload, ValidationError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/checkout")
def checkout_route():
    """
    Record a sale for a cart and decrement stock.

    Body: {"items": [{"product_id", "name", "price", "quantity"}, ...]}
    Never retried server-side; a failed checkout commits nothing.
    """
    try:
        lines = validate_cart_payload(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        transaction = sales_service.checkout(lines)
        return jsonify(transaction), 201

    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except PersistenceError:
        current_app.logger.exception("Checkout failed in storage")
        return jsonify({"error": "Checkout failed; no changes were saved"}), 500
