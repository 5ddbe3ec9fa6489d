from __future__ import annotations

import math
from typing import Any

from tillbook.services.sales_service import CartLine


# Maximum price: 9,999,999.99
# This prevents nonsensical prices
MAX_PRICE = 9_999_999.99
MAX_NAME_LENGTH = 255


class ValidationError(ValueError):
    """400-level input problem."""


def _require_fields(payload: dict, required: list[str]) -> None:
    missing = [f for f in required if f not in payload]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion: rejects floats, booleans and decimal strings."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_price(key: str, value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        price = float(value)
    elif isinstance(value, str):
        try:
            price = float(value.strip())
        except ValueError:
            raise ValidationError(f"{key} must be a number")
    else:
        raise ValidationError(f"{key} must be a number")

    if math.isnan(price) or math.isinf(price):
        raise ValidationError(f"{key} must be a finite number")
    return price


def _coerce_name(value: Any) -> str:
    if value is None:
        raise ValidationError("name cannot be null")
    name = str(value).strip()
    if name == "":
        raise ValidationError("name cannot be blank")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"name exceeds max length {MAX_NAME_LENGTH}")
    return name


def validate_product_payload(payload: dict) -> dict:
    """
    Validates + normalizes an incoming product body.
    Returns {"name", "price", "stock"}.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    _require_fields(payload, ["name", "price", "stock"])

    for k in payload.keys():
        if k not in {"id", "name", "price", "stock"}:
            raise ValidationError(f"Field not allowed: {k}")

    patch = {
        "name": _coerce_name(payload["name"]),
        "price": coerce_price("price", payload["price"]),
        "stock": coerce_int("stock", payload["stock"]),
    }
    enforce_rules_product(patch)
    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by the column types alone.
    Keep these small and centralized.
    """
    price = patch["price"]
    if price < 0:
        raise ValidationError("price must be >= 0")
    if price > MAX_PRICE:
        raise ValidationError(f"price cannot exceed {MAX_PRICE:,.2f}")

    if patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")


def validate_cart_payload(payload: dict) -> list[CartLine]:
    """
    Parse a checkout body: {"items": [{"product_id"|"id", "name", "price", "quantity"}, ...]}.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{i}] must be an object")

        raw_id = item.get("product_id", item.get("id"))
        if raw_id is None:
            raise ValidationError(f"items[{i}].product_id is required")
        if "price" not in item or "quantity" not in item:
            raise ValidationError(f"items[{i}] requires price and quantity")

        quantity = coerce_int(f"items[{i}].quantity", item["quantity"])
        if quantity <= 0:
            raise ValidationError(f"items[{i}].quantity must be > 0")

        price = coerce_price(f"items[{i}].price", item["price"])
        if price < 0:
            raise ValidationError(f"items[{i}].price must be >= 0")

        lines.append(CartLine(
            product_id=coerce_int(f"items[{i}].product_id", raw_id),
            name=str(item.get("name") or ""),
            price=price,
            quantity=quantity,
        ))
    return lines
