from __future__ import annotations

import uuid

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class User(db.Model):
    """
    Shopper or administrator account.

    Email is stored lower-cased and is unique. Username is optional (the
    seeded admin logs in with it) but unique when present.

    password_hash is bcrypt output and never leaves the server: to_dict()
    does not include it.
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = db.Column(db.String(64), nullable=True, unique=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default=ROLE_USER)

    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(128), nullable=True)
    country = db.Column(db.String(128), nullable=True)
    zip_code = db.Column(db.String(16), nullable=True)
    avatar = db.Column(db.String(1024), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "zipCode": self.zip_code,
            "avatar": self.avatar,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
