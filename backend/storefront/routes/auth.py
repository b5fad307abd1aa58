# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- /login: username + password (the admin panel signs in this way)
- /user-login: email + password, shopper accounts only
- /register: self-registration, always creates a "user" account
- /logout, /me: bearer token from the Authorization header

Login and registration answer with the bearer token as "sessionId". It is
unrelated to the cart's session-id header.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import bearer_token, require_auth
from ..extensions import get_sessions
from ..models import User
from ..services import auth_service
from ..services.auth_service import PasswordValidationError
from ..time_utils import to_utc_z
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, ConflictError

REGISTER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "name", "email", "phone", "address", "city", "country", "zip_code", "avatar"},
    required_on_create={"name", "email"},
    aliases={"zipCode": "zip_code"},
)

# Accepted in the body for client convenience but never written
_REGISTER_IGNORED = {"password", "confirmPassword", "role"}

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user: User, message: str, status: int = 200):
    context, token = get_sessions().create_session(user.id)
    return jsonify({
        "user": user.to_dict(),
        "sessionId": token,
        "expiresAt": to_utc_z(context.expires_at),
        "message": message,
    }), status


def _credentials(data, identifier_key: str) -> tuple[str, str] | None:
    if not isinstance(data, dict):
        return None
    identifier = data.get(identifier_key)
    password = data.get("password")
    if not isinstance(identifier, str) or not isinstance(password, str):
        return None
    if not identifier.strip() or not password:
        return None
    return identifier.strip(), password


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by username and create a session token.

    A failed attempt creates no session.
    """
    creds = _credentials(request.get_json(silent=True), "username")
    if creds is None:
        return jsonify({"message": "username and password required"}), 400
    username, password = creds

    try:
        user = auth_service.authenticate_username(username, password)
        if user is None:
            current_app.logger.warning("Failed login for username %r", username)
            return jsonify({"message": "Invalid credentials"}), 401

        current_app.logger.info("User %s logged in", user.id)
        return _session_response(user, "Login successful")
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.post("/user-login")
def user_login_route():
    """Authenticate a shopper by email. Admin accounts must use /login."""
    creds = _credentials(request.get_json(silent=True), "email")
    if creds is None:
        return jsonify({"message": "email and password required"}), 400
    email, password = creds

    try:
        user = auth_service.authenticate_email(email, password)
        if user is None:
            current_app.logger.warning("Failed shopper login for %r", email)
            return jsonify({"message": "Invalid credentials"}), 401
        if user.is_admin:
            return jsonify({"message": "Admin accounts must sign in through the admin login"}), 403

        current_app.logger.info("User %s logged in", user.id)
        return _session_response(user, "Login successful")
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.post("/register")
def register_route():
    """
    Create a shopper account and sign it in.

    Body: {"name", "email", "password", "username"?, "phone"?, "address"?,
    "city"?, "country"?, "zipCode"?, "avatar"?}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"message": "Invalid JSON payload"}), 400

    password = data.get("password")
    confirm = data.get("confirmPassword")
    profile = {k: v for k, v in data.items() if k not in _REGISTER_IGNORED}

    try:
        patch = validate_payload(model=User, payload=profile, policy=REGISTER_POLICY, partial=False)
        if "@" not in patch["email"]:
            raise ValidationError("email must be a valid email address")
        if confirm is not None and confirm != password:
            raise ValidationError("Passwords do not match")
        if not patch.get("username"):
            patch.pop("username", None)
        user = auth_service.register_user(patch, password)
    except (ValidationError, PasswordValidationError) as e:
        return jsonify({"message": str(e)}), 400
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"message": "Internal server error"}), 500

    current_app.logger.info("Registered user %s", user.id)
    return _session_response(user, "Registration successful", 201)


@auth_bp.post("/logout")
def logout_route():
    """
    Destroy the caller's session token.

    Idempotent: an unknown or already-destroyed token still answers 200.
    """
    token = bearer_token()
    if token is None:
        return jsonify({"message": "Authorization header required"}), 401

    if get_sessions().destroy(token):
        current_app.logger.info("Session logged out")
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """The caller's own profile."""
    return jsonify(g.current_user.to_dict())
