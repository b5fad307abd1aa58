# Overview: HTTP client holding a shopper's cart and auth state.

"""
Storefront API client.

Two independent identifiers travel with requests:
- the cart session id, generated once per installation and persisted to a
  JSON file, sent as the 'session-id' header on every cart call;
- the auth token from login/registration, sent as 'Authorization: Bearer'
  on auth-gated calls.

The cached cart is never patched locally. Every successful cart mutation
drops the cache and the next read refetches from the server. A failed
mutation leaves a one-shot Notice and is not retried.
"""

from __future__ import annotations

import json
import logging
import random
import string
import time
from dataclasses import dataclass
from pathlib import Path

import httpx

from .services.pricing_service import CartTotals, compute_cart_totals

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


class StorefrontError(Exception):
    """Non-2xx answer (or transport failure) on a call that must succeed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    variant: str = "default"


@dataclass
class CartView:
    """
    Last cart read. error is set when the read failed, so callers can tell
    a failed load from one that has not happened yet.
    """
    items: list[dict] | None = None
    error: str | None = None

    @property
    def loaded(self) -> bool:
        return self.items is not None

    @property
    def item_count(self) -> int:
        return sum(line["quantity"] for line in self.items or [])

    @property
    def totals(self) -> CartTotals:
        return compute_cart_totals(self.items or [])


def generate_session_id(now: float | None = None, rng: random.Random | None = None) -> str:
    """'session-<epoch ms>-<9 base36 chars>'."""
    now = time.time() if now is None else now
    rng = rng or random.SystemRandom()
    suffix = "".join(rng.choice(_BASE36) for _ in range(9))
    return f"session-{int(now * 1000)}-{suffix}"


def load_or_create_session_id(path: str | Path) -> str:
    """Return the persisted cart session id, creating and saving one on first use."""
    path = Path(path)
    if path.exists():
        try:
            stored = json.loads(path.read_text(encoding="utf-8")).get("sessionId")
        except (ValueError, AttributeError):
            stored = None
        if isinstance(stored, str) and stored:
            return stored
        logger.warning("Ignoring unreadable session file %s", path)

    session_id = generate_session_id()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"sessionId": session_id}), encoding="utf-8")
    return session_id


def _message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return fallback


class StorefrontClient:
    def __init__(
        self,
        base_url: str = "http://127.0.0.1:5001",
        *,
        session_id: str | None = None,
        session_file: str | Path | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 10.0,
    ):
        if session_id is None:
            session_id = (
                load_or_create_session_id(session_file) if session_file else generate_session_id()
            )
        self.session_id = session_id
        self.auth_token: str | None = None
        self.user: dict | None = None
        self.notices: list[Notice] = []
        self._cart: CartView | None = None
        self._http = httpx.Client(base_url=base_url, transport=transport, timeout=timeout)

    # -- plumbing -------------------------------------------------------

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> StorefrontClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _cart_headers(self) -> dict:
        return {"session-id": self.session_id}

    def _auth_headers(self) -> dict:
        if not self.auth_token:
            raise StorefrontError("Not logged in", 401)
        return {"Authorization": f"Bearer {self.auth_token}"}

    def _request(self, method: str, path: str, failure: str, **kwargs) -> httpx.Response:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise StorefrontError(f"{failure}: {e}") from e
        if response.is_error:
            raise StorefrontError(_message(response, failure), response.status_code)
        return response

    # -- catalog --------------------------------------------------------

    def categories(self) -> list[dict]:
        return self._request("GET", "/api/categories", "Failed to fetch categories").json()

    def products(self, *, search: str | None = None, category: str | None = None, featured: bool = False) -> list[dict]:
        params = {}
        if search:
            params["search"] = search
        if category:
            params["category"] = category
        if featured:
            params["featured"] = "true"
        return self._request("GET", "/api/products", "Failed to fetch products", params=params).json()

    def product(self, product_id: str) -> dict:
        return self._request("GET", f"/api/products/{product_id}", "Failed to fetch product").json()

    # -- cart -----------------------------------------------------------

    @property
    def cart(self) -> CartView:
        """Cached cart, fetched on first access after any invalidation."""
        if self._cart is None:
            self.refresh_cart()
        return self._cart

    def invalidate_cart(self) -> None:
        self._cart = None

    def refresh_cart(self) -> CartView:
        try:
            response = self._request("GET", "/api/cart", "Failed to fetch cart", headers=self._cart_headers())
            self._cart = CartView(items=response.json())
        except StorefrontError as e:
            logger.warning("Cart fetch failed: %s", e)
            self._cart = CartView(error=str(e))
        return self._cart

    @property
    def item_count(self) -> int:
        return self.cart.item_count

    @property
    def totals(self) -> CartTotals:
        return self.cart.totals

    def _mutate_cart(self, method: str, path: str, failure: str, success: Notice | None = None, **kwargs) -> bool:
        try:
            self._request(method, path, failure, headers=self._cart_headers(), **kwargs)
        except StorefrontError as e:
            logger.warning("%s: %s", failure, e)
            self.notices.append(Notice("Error", f"{failure}. Please try again.", "destructive"))
            return False
        self.invalidate_cart()
        if success is not None:
            self.notices.append(success)
        return True

    def add_to_cart(self, product_id: str, quantity: int = 1) -> bool:
        return self._mutate_cart(
            "POST", "/api/cart", "Failed to add item to cart",
            Notice("Added to cart", "Item has been added to your cart successfully."),
            json={"productId": product_id, "quantity": quantity},
        )

    def update_quantity(self, product_id: str, quantity: int) -> bool:
        return self._mutate_cart(
            "PUT", f"/api/cart/{product_id}", "Failed to update cart item",
            json={"quantity": quantity},
        )

    def remove_from_cart(self, product_id: str) -> bool:
        return self._mutate_cart(
            "DELETE", f"/api/cart/{product_id}", "Failed to remove item from cart",
            Notice("Removed from cart", "Item has been removed from your cart."),
        )

    def clear_cart(self) -> bool:
        return self._mutate_cart(
            "DELETE", "/api/cart", "Failed to clear cart",
            Notice("Cart cleared", "All items have been removed from your cart."),
        )

    def drain_notices(self) -> list[Notice]:
        notices, self.notices = self.notices, []
        return notices

    # -- auth -----------------------------------------------------------

    def _signed_in(self, response: httpx.Response) -> dict:
        body = response.json()
        self.auth_token = body["sessionId"]
        self.user = body["user"]
        return self.user

    def login(self, username: str, password: str) -> dict:
        response = self._request(
            "POST", "/api/auth/login", "Login failed", json={"username": username, "password": password}
        )
        return self._signed_in(response)

    def user_login(self, email: str, password: str) -> dict:
        response = self._request(
            "POST", "/api/auth/user-login", "Login failed", json={"email": email, "password": password}
        )
        return self._signed_in(response)

    def register(self, **fields) -> dict:
        response = self._request("POST", "/api/auth/register", "Registration failed", json=fields)
        return self._signed_in(response)

    def me(self) -> dict:
        try:
            response = self._request("GET", "/api/auth/me", "Authentication failed", headers=self._auth_headers())
        except StorefrontError:
            self.auth_token = None
            self.user = None
            raise
        self.user = response.json()
        return self.user

    def update_profile(self, **fields) -> dict:
        if self.user is None:
            raise StorefrontError("Not logged in", 401)
        response = self._request(
            "PUT", f"/api/users/{self.user['id']}", "Failed to update profile",
            headers=self._auth_headers(), json=fields,
        )
        self.user = response.json()
        return self.user

    def logout(self) -> None:
        if self.auth_token:
            try:
                self._request("POST", "/api/auth/logout", "Logout failed", headers=self._auth_headers())
            finally:
                self.auth_token = None
                self.user = None

    def dashboard(self) -> dict:
        return self._request(
            "GET", "/api/admin/dashboard", "Failed to fetch dashboard data", headers=self._auth_headers()
        ).json()
