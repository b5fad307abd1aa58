# Overview: Flask API routes for user profiles.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..extensions import get_storage
from ..models import User
from ..permissions import is_allowed
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, ConflictError

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address", "city", "country", "zip_code", "avatar"},
    aliases={"zipCode": "zip_code"},
)

# Read-only fields a client may echo back from a GET; dropped silently
_PROFILE_ECHO = {"id", "username", "role", "isActive", "createdAt", "updatedAt"}

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/<user_id>")
@require_auth
def get_user_route(user_id: str):
    user = get_storage().get_user_by_id(user_id)
    if user is None or not is_allowed(g.current_user, "VIEW_PROFILE", user):
        # Do not reveal whether another user's id exists
        return jsonify({"message": "User not found"}), 404
    return jsonify(user.to_dict())


@users_bp.put("/<user_id>")
@require_auth
def update_user_route(user_id: str):
    """
    Update a profile. Users may edit their own; admins may edit anyone's.

    Role, activation and password are not editable here.
    """
    storage = get_storage()
    target = storage.get_user_by_id(user_id)
    if target is None or not is_allowed(g.current_user, "UPDATE_PROFILE", target):
        # Same answer as GET: never reveal whether another user's id exists
        return jsonify({"message": "User not found"}), 404

    data = request.get_json(silent=True)
    if isinstance(data, dict):
        data = {k: v for k, v in data.items() if k not in _PROFILE_ECHO}

    try:
        patch = validate_payload(model=User, payload=data, policy=PROFILE_POLICY, partial=True)
        if "email" in patch:
            if "@" not in patch["email"]:
                raise ValidationError("email must be a valid email address")
            other = storage.get_user_by_email(patch["email"])
            if other is not None and other.id != target.id:
                raise ConflictError("Email already registered")
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409

    try:
        updated = storage.update_user(target.id, patch)
    except Exception:
        current_app.logger.exception("Failed to update user profile")
        return jsonify({"message": "Failed to update profile"}), 500

    return jsonify(updated.to_dict())
