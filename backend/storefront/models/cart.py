from __future__ import annotations

import uuid

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class CartItem(db.Model):
    """
    One cart line: a product and its quantity inside a shopper's cart session.

    At most one row per (session_id, product_id). Rows never hold a
    quantity below 1; setting a quantity <= 0 deletes the row instead.

    product_id is deliberately not a foreign key: deleting a product leaves
    the line behind and reads filter it out.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("session_id", "product_id", name="uq_cart_items_session_product"),
        db.CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
        db.Index("ix_cart_items_session_id", "session_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = db.Column(db.String(128), nullable=False)
    product_id = db.Column(db.String(36), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "createdAt": to_utc_z(self.created_at),
        }
