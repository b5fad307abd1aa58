# backend/storefront/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # In-memory SQLite by default; the dataset lives only as long as the process
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional file-backed location
        "sqlite://", #default in-memory
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    SEED_ON_STARTUP = _env_bool("SEED_ON_STARTUP", True)
    ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "admin")
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@techstore.local")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "admin123")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    )
