# Overview: Flask API routes for the shopping cart; scoped by the session-id header.

"""
Cart routes.

The cart is addressed by the client-generated 'session-id' header, falling
back to the shared "anonymous" cart. It is independent of login: the auth
bearer token plays no part here.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import cart_session_id
from ..extensions import get_storage
from ..models import CartItem
from ..services.pricing_service import compute_cart_totals
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_cart_add,
    validate_cart_quantity,
    validate_payload,
)

CART_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity"},
    required_on_create={"product_id"},
    aliases={"productId": "product_id"},
)

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


def _cart_lines(session_id: str) -> list[dict]:
    return [
        {**item.to_dict(), "product": product.to_dict()}
        for item, product in get_storage().get_cart_items(session_id)
    ]


@cart_bp.get("")
def get_cart():
    """Cart lines joined with their product; lines for deleted products are omitted."""
    try:
        return jsonify(_cart_lines(cart_session_id()))
    except Exception:
        current_app.logger.exception("Failed to fetch cart items")
        return jsonify({"message": "Failed to fetch cart items"}), 500


@cart_bp.get("/summary")
def get_cart_summary():
    """Item count and money totals for the caller's cart."""
    try:
        totals = compute_cart_totals(_cart_lines(cart_session_id()))
        return jsonify(totals.to_dict())
    except Exception:
        current_app.logger.exception("Failed to compute cart summary")
        return jsonify({"message": "Failed to compute cart summary"}), 500


@cart_bp.post("")
def add_to_cart():
    """
    Add a product to the cart.

    Body: {"productId": "...", "quantity": 2}; quantity defaults to 1.
    Adding a product already in the cart increases its quantity.
    """
    payload = request.get_json(silent=True)
    # sessionId always comes from the header, never from the body
    if isinstance(payload, dict):
        payload = {k: v for k, v in payload.items() if k != "sessionId"}

    try:
        patch = validate_payload(model=CartItem, payload=payload, policy=CART_ITEM_POLICY, partial=False)
        enforce_rules_cart_add(patch)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    storage = get_storage()
    try:
        if storage.get_product_by_id(patch["product_id"]) is None:
            return jsonify({"message": "Product not found"}), 404

        item = storage.add_to_cart(cart_session_id(), patch["product_id"], patch["quantity"])
        return jsonify(item.to_dict()), 201
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add item to cart")
        return jsonify({"message": "Failed to add item to cart"}), 500


@cart_bp.put("/<product_id>")
def update_cart_item(product_id: str):
    """
    Set a line's quantity.

    quantity <= 0 removes the line (204). A missing line with a positive
    quantity is 404.
    """
    try:
        quantity = validate_cart_quantity(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    try:
        item = get_storage().update_cart_item_quantity(cart_session_id(), product_id, quantity)
    except Exception:
        current_app.logger.exception("Failed to update cart item")
        return jsonify({"message": "Failed to update cart item"}), 500

    if item is None:
        if quantity > 0:
            return jsonify({"message": "Cart item not found"}), 404
        return "", 204
    return jsonify(item.to_dict())


@cart_bp.delete("/<product_id>")
def remove_from_cart(product_id: str):
    try:
        get_storage().remove_from_cart(cart_session_id(), product_id)
    except Exception:
        current_app.logger.exception("Failed to remove item from cart")
        return jsonify({"message": "Failed to remove item from cart"}), 500
    return "", 204


@cart_bp.delete("")
def clear_cart():
    try:
        get_storage().clear_cart(cart_session_id())
    except Exception:
        current_app.logger.exception("Failed to clear cart")
        return jsonify({"message": "Failed to clear cart"}), 500
    return "", 204
