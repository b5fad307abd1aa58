# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .extensions import get_sessions, get_storage
from .permissions import is_allowed
from .services.session_service import SessionError

DEFAULT_CART_SESSION = "anonymous"


def bearer_token() -> str | None:
    """Token from 'Authorization: Bearer <token>', or None."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def cart_session_id() -> str:
    """Cart scope from the 'session-id' header; unrelated to auth tokens."""
    return request.headers.get("session-id") or DEFAULT_CART_SESSION


def require_auth(f):
    """
    Require a live session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The resolved SessionContext
    - g.session_token: The plaintext bearer token

    Returns 401 if:
    - No Authorization header
    - Unknown or expired token
    - User account missing or deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"message": "Authentication required"}), 401

        sessions = get_sessions()
        try:
            context = sessions.resolve(token)
        except SessionError as e:
            return jsonify({"message": str(e)}), 401

        user = get_storage().get_user_by_id(context.user_id)
        if user is None or not user.is_active:
            sessions.destroy(token)
            return jsonify({"message": "Invalid token"}), 401

        g.current_user = user
        g.session_context = context
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific permission (apply after @require_auth).

    Ownership-scoped checks that need the target resource are made in the
    route itself through the same is_allowed predicate.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return jsonify({"message": "Authentication required"}), 401

            if not is_allowed(user, permission_code):
                current_app.logger.warning(
                    "Permission %s denied for user %s on %s", permission_code, user.id, request.path
                )
                return jsonify({"message": "Forbidden"}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
