from __future__ import annotations

import uuid

from ..extensions import db


def _new_id() -> str:
    return str(uuid.uuid4())


class Category(db.Model):
    """
    Browsing category shown in the navigation.

    productCount is derived from live products on every read and is never
    stored, so it cannot drift from the catalog.
    """
    __tablename__ = "categories"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(64), nullable=False, unique=True)
    icon = db.Column(db.String(64), nullable=False)

    def to_dict(self, product_count: int = 0) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "productCount": product_count,
        }


class Product(db.Model):
    """
    Catalog product.

    Money and rating are kept as decimal text ("1999.00", "4.8") so they
    round-trip exactly; consumers parse them with Decimal for arithmetic.
    category is free text matched by name, not a foreign key.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category", "category"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    price = db.Column(db.String(16), nullable=False)
    original_price = db.Column(db.String(16), nullable=True)
    image = db.Column(db.String(1024), nullable=False)
    category = db.Column(db.String(64), nullable=False)
    rating = db.Column(db.String(8), nullable=False, default="0")
    in_stock = db.Column(db.Boolean, nullable=False, default=True)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    discount = db.Column(db.Integer, nullable=False, default=0)
    badge = db.Column(db.String(32), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "originalPrice": self.original_price,
            "image": self.image,
            "category": self.category,
            "rating": self.rating,
            "inStock": self.in_stock,
            "featured": self.featured,
            "discount": self.discount,
            "badge": self.badge,
        }
