"""
Storage engine tests: catalog filters, cart merge/update/remove semantics,
orphan filtering and user CRUD.
"""

import threading

import pytest

from storefront.extensions import db, get_storage
from storefront.storage import Storage
from storefront.validation import ValidationError


def _product(storage, name):
    return next(p for p in storage.get_products() if p.name == name)


def _quantities(storage, session_id):
    return {product.name: item.quantity for item, product in storage.get_cart_items(session_id)}


# =============================================================================
# CATALOG
# =============================================================================


class TestCatalog:
    def test_category_counts_follow_live_products(self, storage):
        counts = {c["name"]: c["productCount"] for c in storage.get_categories()}
        assert counts == {"Laptops": 2, "Smartphones": 2, "Audio": 1, "Gaming": 1}

        storage.create_product({
            "name": "Steam Deck", "description": "Handheld PC", "price": "399.00",
            "image": "https://example.com/deck.jpg", "category": "gaming",
        })
        storage.delete_product(_product(storage, "MacBook Pro").id)

        counts = {c["name"]: c["productCount"] for c in storage.get_categories()}
        assert counts["Gaming"] == 2
        assert counts["Laptops"] == 1

    def test_new_category_starts_at_zero(self, storage):
        created = storage.create_category({"name": "Cameras", "icon": "fas fa-camera"})
        assert created["productCount"] == 0
        assert storage.get_category_by_id(created["id"])["name"] == "Cameras"

    def test_products_by_category_is_case_insensitive(self, storage):
        names = {p.name for p in storage.get_products_by_category("LAPTOPS")}
        assert names == {"MacBook Pro", "Dell XPS 13 Plus"}

    def test_featured_products(self, storage):
        assert all(p.featured for p in storage.get_featured_products())
        assert len(storage.get_featured_products()) == 4

    @pytest.mark.parametrize("query,expected", [
        ("macbook", {"MacBook Pro"}),
        ("NOISE", {"Sony WH-1000XM5"}),
        ("smartphones", {"iPhone 15 Pro Max", "Samsung Galaxy S24 Ultra"}),
        ("100%", set()),
    ])
    def test_search_matches_name_description_and_category(self, storage, query, expected):
        assert {p.name for p in storage.search_products(query)} == expected

    def test_unknown_product_is_none(self, storage):
        assert storage.get_product_by_id("does-not-exist") is None


# =============================================================================
# CART
# =============================================================================


class TestCart:
    def test_repeated_adds_accumulate(self, storage):
        macbook = _product(storage, "MacBook Pro")
        for _ in range(3):
            item = storage.add_to_cart("s1", macbook.id, 2)
        assert item.quantity == 6
        assert len(storage.get_cart_items("s1")) == 1

    def test_add_defaults_to_one(self, storage):
        item = storage.add_to_cart("s1", _product(storage, "PlayStation 5 Console").id)
        assert item.quantity == 1
        assert item.created_at is not None

    def test_set_quantity_overrides_accumulated_value(self, storage):
        ps5 = _product(storage, "PlayStation 5 Console")
        storage.add_to_cart("s1", ps5.id, 4)
        assert storage.update_cart_item_quantity("s1", ps5.id, 2).quantity == 2
        storage.add_to_cart("s1", ps5.id, 1)
        assert _quantities(storage, "s1") == {"PlayStation 5 Console": 3}

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_removes_line(self, storage, quantity):
        ps5 = _product(storage, "PlayStation 5 Console")
        storage.add_to_cart("s1", ps5.id, 2)
        assert storage.update_cart_item_quantity("s1", ps5.id, quantity) is None
        assert storage.get_cart_items("s1") == []

    def test_update_missing_line_returns_none(self, storage):
        ps5 = _product(storage, "PlayStation 5 Console")
        assert storage.update_cart_item_quantity("s1", ps5.id, 5) is None
        assert storage.get_cart_items("s1") == []

    def test_remove_is_idempotent(self, storage):
        ps5 = _product(storage, "PlayStation 5 Console")
        storage.add_to_cart("s1", ps5.id)
        storage.remove_from_cart("s1", ps5.id)
        storage.remove_from_cart("s1", ps5.id)
        assert storage.get_cart_items("s1") == []

    def test_clear_is_idempotent_and_scoped(self, storage):
        ps5 = _product(storage, "PlayStation 5 Console")
        storage.add_to_cart("s1", ps5.id)
        storage.add_to_cart("s2", ps5.id)
        storage.clear_cart("s1")
        storage.clear_cart("s1")
        assert storage.get_cart_items("s1") == []
        assert _quantities(storage, "s2") == {"PlayStation 5 Console": 1}

    def test_sessions_do_not_share_lines(self, storage):
        ps5 = _product(storage, "PlayStation 5 Console")
        storage.add_to_cart("s1", ps5.id, 2)
        storage.add_to_cart("s2", ps5.id, 5)
        assert _quantities(storage, "s1") == {"PlayStation 5 Console": 2}
        assert _quantities(storage, "s2") == {"PlayStation 5 Console": 5}

    def test_lines_for_deleted_products_are_dropped(self, storage):
        ps5 = _product(storage, "PlayStation 5 Console")
        sony = _product(storage, "Sony WH-1000XM5")
        storage.add_to_cart("s1", ps5.id)
        storage.add_to_cart("s1", sony.id)

        assert storage.delete_product(ps5.id) is True

        assert _quantities(storage, "s1") == {"Sony WH-1000XM5": 1}

    def test_cart_counts_distinct_sessions(self, storage):
        ps5 = _product(storage, "PlayStation 5 Console")
        storage.add_to_cart("s1", ps5.id)
        storage.add_to_cart("s2", ps5.id)
        storage.add_to_cart("s2", _product(storage, "MacBook Pro").id)
        assert storage.count_cart_sessions() == 2

    def test_merged_quantity_cannot_pass_cap(self, storage):
        ps5 = _product(storage, "PlayStation 5 Console")
        storage.add_to_cart("s1", ps5.id, 998)
        with pytest.raises(ValidationError):
            storage.add_to_cart("s1", ps5.id, 2)
        assert _quantities(storage, "s1") == {"PlayStation 5 Console": 998}
        assert storage.add_to_cart("s1", ps5.id, 1).quantity == 999


# =============================================================================
# USERS
# =============================================================================


class TestUsers:
    def test_create_user_defaults(self, storage):
        user = storage.create_user({"name": "Ann", "email": "Ann@Example.com", "password_hash": "x"})
        assert user.role == "user"
        assert user.is_active is True
        assert user.email == "ann@example.com"
        assert storage.get_user_by_email("ANN@example.com").id == user.id

    def test_update_refreshes_updated_at(self, app_ctx, clock):
        storage = Storage(db, clock=clock)
        user = storage.create_user({"name": "Ann", "email": "ann@example.com", "password_hash": "x"})
        created = user.updated_at

        clock.advance(minutes=5)
        updated = storage.update_user(user.id, {"city": "Lisbon"})

        assert updated.city == "Lisbon"
        assert updated.updated_at == clock.now
        assert updated.created_at == created

    def test_update_unknown_user(self, storage):
        assert storage.update_user("missing", {"city": "Lisbon"}) is None

    def test_seeded_admin(self, storage):
        admin = storage.get_user_by_username("admin")
        assert admin.role == "admin"
        assert admin.password_hash != "admin123"


# =============================================================================
# CONCURRENCY
# =============================================================================


def _run_threads(app, target, count):
    """Run target(i) in count threads, each inside its own app context; return raised errors."""
    errors = []

    def worker(i):
        try:
            with app.app_context():
                target(i)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return errors


class TestConcurrency:
    @pytest.fixture
    def ps5_id(self, app):
        with app.app_context():
            return _product(get_storage(), "PlayStation 5 Console").id

    def test_adds_and_clears_across_sessions(self, app, ps5_id):
        def shop(i):
            storage = get_storage()
            storage.add_to_cart(f"s{i}", ps5_id)
            storage.get_cart_items(f"s{i}")
            if i % 2:
                storage.clear_cart(f"s{i}")

        assert _run_threads(app, shop, 30) == []

        with app.app_context():
            storage = get_storage()
            assert storage.count_cart_sessions() == 15
            for i in range(0, 30, 2):
                assert _quantities(storage, f"s{i}") == {"PlayStation 5 Console": 1}

    def test_adds_to_one_line_all_land(self, app, ps5_id):
        assert _run_threads(app, lambda i: get_storage().add_to_cart("shared", ps5_id), 20) == []

        with app.app_context():
            assert _quantities(get_storage(), "shared") == {"PlayStation 5 Console": 20}

    def test_readers_alongside_writers(self, app, ps5_id):
        def mixed(i):
            storage = get_storage()
            if i % 3 == 0:
                storage.add_to_cart(f"s{i}", ps5_id, 2)
            else:
                storage.get_categories()
                storage.search_products("console")
                storage.count_cart_sessions()

        assert _run_threads(app, mixed, 30) == []

        with app.app_context():
            assert get_storage().count_cart_sessions() == 10
