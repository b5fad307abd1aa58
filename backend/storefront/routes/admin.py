# Overview: Flask API routes for the admin panel; dashboard counts and catalog management.

"""
Admin routes.

Every endpoint requires a session whose user holds the named permission;
only the "admin" role has them.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..extensions import get_sessions, get_storage
from ..models import Category, Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "icon"},
    required_on_create={"name", "icon"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "description", "price", "original_price", "image", "category",
        "rating", "in_stock", "featured", "discount", "badge",
    },
    required_on_create={"name", "description", "price", "image", "category"},
    aliases={"originalPrice": "original_price", "inStock": "in_stock"},
    decimal_fields={"price", "original_price", "rating"},
)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/dashboard")
@require_auth
@require_permission("VIEW_DASHBOARD")
def dashboard():
    """Aggregate counts for the admin landing page."""
    storage = get_storage()
    try:
        return jsonify({
            "totalUsers": storage.count_users(),
            "totalProducts": storage.count_products(),
            "featuredProducts": storage.count_products(featured=True),
            "totalCategories": storage.count_categories(),
            "activeCarts": storage.count_cart_sessions(),
            "activeSessions": get_sessions().active_count(),
        })
    except Exception:
        current_app.logger.exception("Failed to load dashboard")
        return jsonify({"message": "Failed to load dashboard"}), 500


@admin_bp.post("/categories")
@require_auth
@require_permission("MANAGE_CATALOG")
def create_category_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    storage = get_storage()
    try:
        if storage.get_category_by_name(patch["name"]) is not None:
            raise ConflictError("Category already exists")
        created = storage.create_category(patch)
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"message": "Failed to create category"}), 500

    current_app.logger.info("User %s created category %s", g.current_user.id, created["id"])
    return jsonify(created), 201


@admin_bp.post("/products")
@require_auth
@require_permission("MANAGE_CATALOG")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    try:
        product = get_storage().create_product(patch)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"message": "Failed to create product"}), 500

    current_app.logger.info("User %s created product %s", g.current_user.id, product.id)
    return jsonify(product.to_dict()), 201


@admin_bp.delete("/products/<product_id>")
@require_auth
@require_permission("MANAGE_CATALOG")
def delete_product_route(product_id: str):
    """Delete a product. Cart lines that reference it disappear from cart reads."""
    try:
        deleted = get_storage().delete_product(product_id)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"message": "Failed to delete product"}), 500

    if not deleted:
        return jsonify({"message": "Product not found"}), 404

    current_app.logger.info("User %s deleted product %s", g.current_user.id, product_id)
    return "", 204
