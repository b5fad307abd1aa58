from .catalog import Category, Product
from .cart import CartItem
from .auth import User

__all__ = [
    'Category', 'Product',
    'CartItem',
    'User',
]
