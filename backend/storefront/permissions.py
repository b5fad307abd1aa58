# Overview: Permission codes, role grants and the single authorization predicate.

"""
Role-based authorization.

Every access decision goes through is_allowed(subject, action, resource).
Routes never compare role strings themselves.

Profile permissions are ownership-scoped: a subject may act on its own
profile, and acting on anyone else's also requires MANAGE_USERS.
"""

from __future__ import annotations

from .models import User
from .models.auth import ROLE_ADMIN, ROLE_USER


class PermissionCategory:
    CATALOG = "CATALOG"
    ACCOUNT = "ACCOUNT"
    ADMIN = "ADMIN"


# (code, name, description, category)
PERMISSION_DEFINITIONS = [
    ("VIEW_PROFILE", "View profile", "Read a user profile", PermissionCategory.ACCOUNT),
    ("UPDATE_PROFILE", "Update profile", "Edit a user profile", PermissionCategory.ACCOUNT),
    ("MANAGE_CATALOG", "Manage catalog", "Create and delete categories and products", PermissionCategory.CATALOG),
    ("VIEW_DASHBOARD", "View dashboard", "Read aggregate store counts", PermissionCategory.ADMIN),
    ("MANAGE_USERS", "Manage users", "Act on profiles owned by other users", PermissionCategory.ADMIN),
]

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ROLE_USER: frozenset({"VIEW_PROFILE", "UPDATE_PROFILE"}),
    ROLE_ADMIN: frozenset(perm[0] for perm in PERMISSION_DEFINITIONS),
}

OWNERSHIP_SCOPED = frozenset({"VIEW_PROFILE", "UPDATE_PROFILE"})


def get_all_permission_codes() -> list[str]:
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_role_permissions(role: str) -> frozenset[str]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def is_allowed(subject: User | None, action: str, resource: User | None = None) -> bool:
    """Can subject perform action (optionally on resource)?"""
    if subject is None or not subject.is_active:
        return False

    granted = get_role_permissions(subject.role)
    if action not in granted:
        return False

    if action in OWNERSHIP_SCOPED and resource is not None and resource.id != subject.id:
        return "MANAGE_USERS" in granted

    return True
