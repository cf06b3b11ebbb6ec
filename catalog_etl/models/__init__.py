"""
SQLModel database models
"""

from .base import utc_now
from .product import Product, ProductAudience, ProductImage, ProductInventory, ProductTag
from .supplier import Supplier
from .user import User

__all__ = [
    "utc_now",
    "Supplier",
    "Product",
    "ProductInventory",
    "ProductTag",
    "ProductAudience",
    "ProductImage",
    "User",
]
