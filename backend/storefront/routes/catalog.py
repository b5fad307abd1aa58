# Overview: Flask API routes for categories and products; read-only catalog browsing.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import get_storage

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.get("/categories")
def list_categories():
    """All categories with productCount computed from live products."""
    try:
        return jsonify(get_storage().get_categories())
    except Exception:
        current_app.logger.exception("Failed to fetch categories")
        return jsonify({"message": "Failed to fetch categories"}), 500


@catalog_bp.get("/categories/<category_id>")
def get_category(category_id: str):
    try:
        category = get_storage().get_category_by_id(category_id)
    except Exception:
        current_app.logger.exception("Failed to fetch category")
        return jsonify({"message": "Failed to fetch category"}), 500

    if category is None:
        return jsonify({"message": "Category not found"}), 404
    return jsonify(category)


@catalog_bp.get("/products")
def list_products():
    """
    List products.

    Query params (mutually exclusive, first non-empty one wins):
    - search: case-insensitive substring over name, description, category
    - category: case-insensitive category name
    - featured: any non-empty value selects featured products
    Without any of them, every product is returned. No pagination.
    """
    search = request.args.get("search", "").strip()
    category = request.args.get("category", "").strip()
    featured = request.args.get("featured", "").strip()

    storage = get_storage()
    try:
        if search:
            products = storage.search_products(search)
        elif category:
            products = storage.get_products_by_category(category)
        elif featured:
            products = storage.get_featured_products()
        else:
            products = storage.get_products()
        return jsonify([p.to_dict() for p in products])
    except Exception:
        current_app.logger.exception("Failed to fetch products")
        return jsonify({"message": "Failed to fetch products"}), 500


@catalog_bp.get("/products/<product_id>")
def get_product(product_id: str):
    try:
        product = get_storage().get_product_by_id(product_id)
    except Exception:
        current_app.logger.exception("Failed to fetch product")
        return jsonify({"message": "Failed to fetch product"}), 500

    if product is None:
        return jsonify({"message": "Product not found"}), 404
    return jsonify(product.to_dict())
