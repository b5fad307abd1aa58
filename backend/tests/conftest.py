"""
Pytest fixtures for storefront backend tests.

Every test gets a fresh application with its own in-memory database, seeded
with the demo catalog and the admin account.
"""

from datetime import datetime, timedelta

import pytest

from storefront import create_app
from storefront.extensions import get_storage

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"
ADMIN_EMAIL = "admin@techstore.local"


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    return create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'BCRYPT_ROUNDS': 4,
        'SEED_ON_STARTUP': True,
        'ADMIN_USERNAME': ADMIN_USERNAME,
        'ADMIN_PASSWORD': ADMIN_PASSWORD,
        'ADMIN_EMAIL': ADMIN_EMAIL,
    })


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def storage(app_ctx):
    return get_storage()


@pytest.fixture(scope='function')
def clock():
    return FakeClock()


@pytest.fixture(scope='function')
def products(client):
    """Seed products keyed by name."""
    return {p["name"]: p for p in client.get('/api/products').json}


@pytest.fixture(scope='function')
def macbook(products):
    return products["MacBook Pro"]


@pytest.fixture(scope='function')
def admin_headers(client):
    return auth_headers(get_auth_token(client, ADMIN_USERNAME, ADMIN_PASSWORD))


@pytest.fixture(scope='function')
def shopper(client):
    """Register a shopper; returns (user dict, token)."""
    response = client.post('/api/auth/register', json={
        'name': 'Jane Shopper',
        'email': 'jane@example.com',
        'password': 'secret123',
    })
    assert response.status_code == 201
    return response.json['user'], response.json['sessionId']


@pytest.fixture(scope='function')
def shopper_headers(shopper):
    return auth_headers(shopper[1])


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('sessionId')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def cart_headers(session_id: str) -> dict:
    return {'session-id': session_id}
