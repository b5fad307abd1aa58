# Overview: Service-layer operations for auth; password hashing, credential checks, registration.

"""
Authentication Service

Passwords are hashed with bcrypt (salted, cost from BCRYPT_ROUNDS) and checked
with bcrypt.checkpw, which compares in constant time. Plaintext passwords are
never stored or compared directly.

Session tokens are managed separately (see session_service.py).
"""

import bcrypt
from flask import current_app

from ..extensions import get_storage
from ..models import User
from ..models.auth import ROLE_USER
from ..validation import ConflictError

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt ignores anything past this

# Checked when the account does not exist so unknown accounts still pay for a bcrypt check.
_DUMMY_HASH = bcrypt.hashpw(b"storefront-dummy-password", bcrypt.gensalt(rounds=4)).decode('utf-8')


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password) -> None:
    """
    Requirements:
    - A string of at least 6 characters, not only whitespace
    - At most 72 bytes once UTF-8 encoded

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or not password.strip():
        raise PasswordValidationError("Password is required")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise PasswordValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")


def hash_password(password: str, rounds: int | None = None) -> str:
    """Validate and hash a password with bcrypt."""
    validate_password_strength(password)
    if rounds is None:
        rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Returns True if password matches hash, False otherwise."""
    if not isinstance(password, str):
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash or over-long input
        return False


def _check(user: User | None, password: str) -> User | None:
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password_hash):
        return None
    if not user.is_active:
        return None
    return user


def authenticate_username(username: str, password: str) -> User | None:
    """Look up by username and verify the password. Inactive users never authenticate."""
    return _check(get_storage().get_user_by_username(username), password)


def authenticate_email(email: str, password: str) -> User | None:
    """Look up by email (case-insensitive) and verify the password."""
    return _check(get_storage().get_user_by_email(email), password)


def register_user(patch: dict, password: str) -> User:
    """
    Create a shopper account.

    patch holds validated profile fields (column keys). Self-registration
    always yields role "user"; admin accounts come from seeding or the CLI.

    Raises:
        ConflictError: email or username already taken
        PasswordValidationError: weak password
    """
    storage = get_storage()

    if storage.get_user_by_email(patch["email"]) is not None:
        raise ConflictError("Email already registered")
    if patch.get("username") and storage.get_user_by_username(patch["username"]) is not None:
        raise ConflictError("Username already taken")

    password_hash = hash_password(password)
    return storage.create_user({**patch, "password_hash": password_hash, "role": ROLE_USER})
