# Overview: Startup seed data for the catalog and the admin account.

from __future__ import annotations

from flask import current_app

from .models.auth import ROLE_ADMIN
from .services.auth_service import hash_password
from .storage import Storage

_IMAGE = "https://images.unsplash.com/{}?ixlib=rb-4.0.3&auto=format&fit=crop&w=800&h=600"

SEED_CATEGORIES = [
    {"name": "Laptops", "icon": "fas fa-laptop"},
    {"name": "Smartphones", "icon": "fas fa-mobile-alt"},
    {"name": "Audio", "icon": "fas fa-headphones"},
    {"name": "Gaming", "icon": "fas fa-gamepad"},
]

SEED_PRODUCTS = [
    {
        "name": "MacBook Pro",
        "description": "Supercharged by M2 Pro or M2 Max chip. Up to 22 hours of battery life.",
        "price": "1999.00",
        "original_price": "2349.00",
        "image": _IMAGE.format("photo-1496181133206-80ce9b88a853"),
        "category": "Laptops",
        "rating": "4.8",
        "featured": True,
        "discount": 15,
        "badge": "15% OFF",
    },
    {
        "name": "iPhone 15 Pro Max",
        "description": "Titanium. So strong. So light. So Pro. A17 Pro chip with advanced features.",
        "price": "1199.00",
        "image": _IMAGE.format("photo-1556656793-08538906a9f8"),
        "category": "Smartphones",
        "rating": "4.9",
        "featured": True,
        "badge": "NEW",
    },
    {
        "name": "Sony WH-1000XM5",
        "description": "Industry-leading noise cancellation with premium sound quality.",
        "price": "399.00",
        "original_price": "449.00",
        "image": _IMAGE.format("photo-1505740420928-5e560c06d30e"),
        "category": "Audio",
        "rating": "4.7",
        "featured": True,
        "discount": 11,
    },
    {
        "name": "PlayStation 5 Console",
        "description": "Experience lightning-fast loading with an ultra-high speed SSD.",
        "price": "499.00",
        "image": _IMAGE.format("photo-1606144042614-b2417e99c4e3"),
        "category": "Gaming",
        "rating": "4.8",
        "featured": True,
        "badge": "HOT",
    },
    {
        "name": "Dell XPS 13 Plus",
        "description": "Ultra-thin laptop with stunning 13.4-inch display and 12th Gen Intel processors.",
        "price": "1299.00",
        "image": _IMAGE.format("photo-1588872657578-7efd1f1555ed"),
        "category": "Laptops",
        "rating": "4.6",
    },
    {
        "name": "Samsung Galaxy S24 Ultra",
        "description": "Most advanced Galaxy phone with S Pen and professional-grade cameras.",
        "price": "1099.00",
        "image": _IMAGE.format("photo-1610945265064-0e34e5519bbf"),
        "category": "Smartphones",
        "rating": "4.7",
    },
]


def seed_catalog(storage: Storage) -> int:
    """Create the seed categories and products. No-op once any category exists."""
    if storage.count_categories():
        return 0
    for category in SEED_CATEGORIES:
        storage.create_category(dict(category))
    for product in SEED_PRODUCTS:
        storage.create_product(dict(product))
    return len(SEED_PRODUCTS)


def seed_admin(storage: Storage) -> bool:
    """Create the configured admin account unless the username is taken."""
    config = current_app.config
    username = config["ADMIN_USERNAME"]
    if storage.get_user_by_username(username) is not None:
        return False
    storage.create_user({
        "username": username,
        "name": "Administrator",
        "email": config["ADMIN_EMAIL"],
        "password_hash": hash_password(config["ADMIN_PASSWORD"]),
        "role": ROLE_ADMIN,
    })
    return True
