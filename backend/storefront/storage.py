# Overview: Repository for categories, products, cart lines and users.

"""
Storage engine.

One Storage object is built by create_app() and handed to route handlers
through get_storage(). It is the single source of truth for the process:
with the default in-memory SQLite URI the whole dataset lives and dies with
the process.

CART CONSISTENCY:
- (session_id, product_id) is unique; add_to_cart merges into the existing
  line instead of inserting a second one.
- Every public operation, reads included, runs under one store-wide lock and
  ends its transaction before releasing it. Request threads share a single
  connection with the in-memory database, so no transaction may span two
  operations.
- A line never holds more than MAX_CART_QUANTITY; an add that would push it
  past the cap is rejected and the line is left unchanged.
- Lines whose product has been deleted are dropped on read, never surfaced.
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Callable
from datetime import datetime
from functools import wraps

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import func, or_

from .models import CartItem, Category, Product, User
from .models.auth import ROLE_USER
from .time_utils import utcnow
from .validation import MAX_CART_QUANTITY, ValidationError


def _serialized(method):
    """Run a Storage operation under the store lock, committing or rolling back before release."""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                result = method(self, *args, **kwargs)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            return result
    return wrapper


class Storage:
    def __init__(self, db: SQLAlchemy, clock: Callable[[], datetime] = utcnow):
        self._db = db
        self._clock = clock
        self._lock = threading.RLock()

    @property
    def _session(self):
        return self._db.session

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def _product_counts(self) -> Counter:
        rows = self._session.query(func.lower(Product.category), func.count(Product.id)).group_by(
            func.lower(Product.category)
        )
        return Counter({name: count for name, count in rows})

    @_serialized
    def get_categories(self) -> list[dict]:
        """All categories, each with productCount taken from live products."""
        counts = self._product_counts()
        categories = self._session.query(Category).order_by(Category.name.asc()).all()
        return [c.to_dict(product_count=counts[c.name.lower()]) for c in categories]

    @_serialized
    def get_category_by_id(self, category_id: str) -> dict | None:
        category = self._session.get(Category, category_id)
        if category is None:
            return None
        return category.to_dict(product_count=self._product_counts()[category.name.lower()])

    @_serialized
    def create_category(self, fields: dict) -> dict:
        category = Category(**fields)
        self._session.add(category)
        self._session.commit()
        return category.to_dict(product_count=self._product_counts()[category.name.lower()])

    @_serialized
    def get_category_by_name(self, name: str) -> Category | None:
        return (
            self._session.query(Category)
            .filter(func.lower(Category.name) == name.lower())
            .first()
        )

    @_serialized
    def count_categories(self) -> int:
        return self._session.query(Category).count()

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def _products(self):
        return self._session.query(Product).order_by(Product.name.asc(), Product.id.asc())

    @_serialized
    def get_products(self) -> list[Product]:
        return self._products().all()

    @_serialized
    def get_products_by_category(self, category: str) -> list[Product]:
        return self._products().filter(func.lower(Product.category) == category.lower()).all()

    @_serialized
    def get_featured_products(self) -> list[Product]:
        return self._products().filter(Product.featured.is_(True)).all()

    @_serialized
    def search_products(self, query: str) -> list[Product]:
        """Case-insensitive substring match over name, description and category."""
        term = query.lower()
        return self._products().filter(
            or_(
                func.lower(Product.name).contains(term, autoescape=True),
                func.lower(Product.description).contains(term, autoescape=True),
                func.lower(Product.category).contains(term, autoescape=True),
            )
        ).all()

    @_serialized
    def get_product_by_id(self, product_id: str) -> Product | None:
        return self._session.get(Product, product_id)

    @_serialized
    def create_product(self, fields: dict) -> Product:
        product = Product(**fields)
        self._session.add(product)
        self._session.commit()
        return product

    @_serialized
    def delete_product(self, product_id: str) -> bool:
        """Remove a product. Cart lines pointing at it are left in place."""
        product = self._session.get(Product, product_id)
        if product is None:
            return False
        self._session.delete(product)
        self._session.commit()
        return True

    @_serialized
    def count_products(self, *, featured: bool | None = None) -> int:
        query = self._session.query(Product)
        if featured is not None:
            query = query.filter(Product.featured.is_(featured))
        return query.count()

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    def _find_cart_item(self, session_id: str, product_id: str) -> CartItem | None:
        return (
            self._session.query(CartItem)
            .filter_by(session_id=session_id, product_id=product_id)
            .first()
        )

    @_serialized
    def get_cart_items(self, session_id: str) -> list[tuple[CartItem, Product]]:
        """
        Cart lines for a session joined with their product.

        The inner join drops lines whose product no longer exists.
        """
        rows = (
            self._session.query(CartItem, Product)
            .join(Product, Product.id == CartItem.product_id)
            .filter(CartItem.session_id == session_id)
            .order_by(CartItem.created_at.asc(), CartItem.id.asc())
            .all()
        )
        return [(item, product) for item, product in rows]

    @_serialized
    def add_to_cart(self, session_id: str, product_id: str, quantity: int = 1) -> CartItem:
        """
        Merge-on-add: an existing line accumulates quantity, otherwise a new
        line is created. Raises ValidationError when the merged quantity would
        exceed MAX_CART_QUANTITY.
        """
        item = self._find_cart_item(session_id, product_id)
        if item is not None:
            if item.quantity + quantity > MAX_CART_QUANTITY:
                raise ValidationError(f"quantity cannot exceed {MAX_CART_QUANTITY}")
            item.quantity += quantity
        else:
            item = CartItem(
                session_id=session_id,
                product_id=product_id,
                quantity=quantity,
                created_at=self._clock(),
            )
            self._session.add(item)
        self._session.commit()
        return item

    @_serialized
    def update_cart_item_quantity(self, session_id: str, product_id: str, quantity: int) -> CartItem | None:
        """
        Set a line's quantity.

        quantity <= 0 deletes the line. Returns the updated line, or None when
        the line was removed or never existed.
        """
        item = self._find_cart_item(session_id, product_id)
        if item is None:
            return None
        if quantity <= 0:
            self._session.delete(item)
            self._session.commit()
            return None
        item.quantity = quantity
        self._session.commit()
        return item

    @_serialized
    def remove_from_cart(self, session_id: str, product_id: str) -> None:
        self._session.query(CartItem).filter_by(
            session_id=session_id, product_id=product_id
        ).delete()
        self._session.commit()

    @_serialized
    def clear_cart(self, session_id: str) -> None:
        self._session.query(CartItem).filter_by(session_id=session_id).delete()
        self._session.commit()

    @_serialized
    def count_cart_sessions(self) -> int:
        return self._session.query(func.count(func.distinct(CartItem.session_id))).scalar() or 0

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @_serialized
    def create_user(self, fields: dict) -> User:
        now = self._clock()
        fields = dict(fields)
        fields.setdefault("role", ROLE_USER)
        fields.setdefault("is_active", True)
        if fields.get("email"):
            fields["email"] = fields["email"].strip().lower()
        user = User(created_at=now, updated_at=now, **fields)
        self._session.add(user)
        self._session.commit()
        return user

    @_serialized
    def get_user_by_id(self, user_id: str) -> User | None:
        return self._session.get(User, user_id)

    @_serialized
    def get_user_by_username(self, username: str) -> User | None:
        return self._session.query(User).filter_by(username=username).first()

    @_serialized
    def get_user_by_email(self, email: str) -> User | None:
        return self._session.query(User).filter_by(email=email.strip().lower()).first()

    @_serialized
    def update_user(self, user_id: str, patch: dict) -> User | None:
        user = self._session.get(User, user_id)
        if user is None:
            return None
        for key, value in patch.items():
            if key == "email" and value:
                value = value.strip().lower()
            setattr(user, key, value)
        user.updated_at = self._clock()
        self._session.commit()
        return user

    @_serialized
    def list_users(self) -> list[User]:
        return self._session.query(User).order_by(User.created_at.asc(), User.email.asc()).all()

    @_serialized
    def count_users(self) -> int:
        return self._session.query(User).count()
