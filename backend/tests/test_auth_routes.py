"""Auth routes: login variants, registration, logout and /me."""

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, auth_headers, get_auth_token


def session_count(app):
    return len(app.extensions["sessions"])


class TestLogin:
    def test_admin_login(self, client, app):
        response = client.post('/api/auth/login', json={'username': ADMIN_USERNAME, 'password': ADMIN_PASSWORD})
        assert response.status_code == 200
        assert response.json["user"]["role"] == "admin"
        assert "password" not in response.json["user"]
        assert "password_hash" not in response.json["user"]
        assert len(response.json["sessionId"]) == 64
        assert response.json["expiresAt"].endswith("Z")
        assert session_count(app) == 1

    def test_wrong_password_creates_no_session(self, client, app):
        response = client.post('/api/auth/login', json={'username': ADMIN_USERNAME, 'password': 'wrong'})
        assert response.status_code == 401
        assert response.json == {"message": "Invalid credentials"}
        assert "sessionId" not in response.json
        assert session_count(app) == 0

    def test_unknown_user(self, client):
        response = client.post('/api/auth/login', json={'username': 'ghost', 'password': 'whatever'})
        assert response.status_code == 401

    def test_missing_fields(self, client):
        assert client.post('/api/auth/login', json={'username': ADMIN_USERNAME}).status_code == 400
        assert client.post('/api/auth/login').status_code == 400
        assert client.post('/api/auth/login', json={'username': 1, 'password': 2}).status_code == 400

    def test_user_login_by_email(self, client, shopper):
        response = client.post('/api/auth/user-login', json={'email': 'JANE@example.com', 'password': 'secret123'})
        assert response.status_code == 200
        assert response.json["user"]["id"] == shopper[0]["id"]

    def test_user_login_wrong_password(self, client, shopper):
        response = client.post('/api/auth/user-login', json={'email': 'jane@example.com', 'password': 'nope123'})
        assert response.status_code == 401

    def test_user_login_refuses_admin(self, client, app):
        response = client.post(
            '/api/auth/user-login', json={'email': 'admin@techstore.local', 'password': ADMIN_PASSWORD}
        )
        assert response.status_code == 403
        assert session_count(app) == 0


class TestRegister:
    def test_register_signs_in(self, client, shopper):
        user, token = shopper
        assert user["role"] == "user"
        assert user["isActive"] is True
        assert user["email"] == "jane@example.com"

        response = client.get('/api/auth/me', headers=auth_headers(token))
        assert response.status_code == 200
        assert response.json["id"] == user["id"]

    def test_cannot_self_register_as_admin(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Mallory', 'email': 'mallory@example.com', 'password': 'secret123', 'role': 'admin',
        })
        assert response.status_code == 201
        assert response.json["user"]["role"] == "user"

    def test_duplicate_email(self, client, shopper):
        response = client.post('/api/auth/register', json={
            'name': 'Other', 'email': 'Jane@Example.com', 'password': 'secret123',
        })
        assert response.status_code == 409

    def test_duplicate_username(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Other', 'email': 'other@example.com', 'password': 'secret123', 'username': 'admin',
        })
        assert response.status_code == 409

    def test_weak_password(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Weak', 'email': 'weak@example.com', 'password': '123',
        })
        assert response.status_code == 400

    def test_password_confirmation_mismatch(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Typo', 'email': 'typo@example.com', 'password': 'secret123', 'confirmPassword': 'secret124',
        })
        assert response.status_code == 400

    def test_missing_required_fields(self, client):
        response = client.post('/api/auth/register', json={'email': 'x@example.com', 'password': 'secret123'})
        assert response.status_code == 400
        assert "name" in response.json["message"]

    def test_invalid_email(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'NoAt', 'email': 'not-an-email', 'password': 'secret123',
        })
        assert response.status_code == 400

    def test_optional_profile_fields(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Full', 'email': 'full@example.com', 'password': 'secret123',
            'username': 'full', 'city': 'Porto', 'zipCode': '4000-001',
        })
        assert response.status_code == 201
        assert response.json["user"]["username"] == "full"
        assert response.json["user"]["zipCode"] == "4000-001"


class TestMeAndLogout:
    def test_me_without_token(self, client):
        response = client.get('/api/auth/me')
        assert response.status_code == 401

    def test_me_with_bad_token(self, client):
        response = client.get('/api/auth/me', headers=auth_headers('bogus'))
        assert response.status_code == 401
        assert response.json == {"message": "Invalid token"}

    def test_me_with_expired_token(self, client, app, clock):
        from storefront.services.session_service import SessionStore

        app.extensions["sessions"] = SessionStore(clock=clock)
        token = get_auth_token(client, ADMIN_USERNAME, ADMIN_PASSWORD)
        assert client.get('/api/auth/me', headers=auth_headers(token)).status_code == 200

        clock.advance(hours=24)
        response = client.get('/api/auth/me', headers=auth_headers(token))
        assert response.status_code == 401
        assert response.json == {"message": "Session expired"}

    def test_logout_destroys_session(self, client, app):
        token = get_auth_token(client, ADMIN_USERNAME, ADMIN_PASSWORD)
        assert client.post('/api/auth/logout', headers=auth_headers(token)).status_code == 200
        assert session_count(app) == 0
        assert client.get('/api/auth/me', headers=auth_headers(token)).status_code == 401

    def test_logout_is_idempotent(self, client):
        token = get_auth_token(client, ADMIN_USERNAME, ADMIN_PASSWORD)
        for _ in range(2):
            assert client.post('/api/auth/logout', headers=auth_headers(token)).status_code == 200

    def test_logout_requires_header(self, client):
        assert client.post('/api/auth/logout').status_code == 401

    def test_cart_session_is_not_an_auth_token(self, client):
        response = client.get('/api/auth/me', headers={'session-id': 'anonymous'})
        assert response.status_code == 401
