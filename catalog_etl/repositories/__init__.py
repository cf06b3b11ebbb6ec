"""
Data access layer
"""

from .catalog import CatalogStore
from .user import UserRepository

__all__ = ["CatalogStore", "UserRepository"]
