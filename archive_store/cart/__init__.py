"""
Module 'cart': panier persistant côté client (store + ports de stockage).
"""

from .models import CatalogItem, CartItem
from .storage import CartStorage, MemoryCartStorage, FileCartStorage
from .store import CartStore, CART_STORAGE_KEY

__all__ = [
    "CatalogItem",
    "CartItem",
    "CartStorage",
    "MemoryCartStorage",
    "FileCartStorage",
    "CartStore",
    "CART_STORAGE_KEY",
]
