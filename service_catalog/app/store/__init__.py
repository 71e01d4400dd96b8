"""
Catalog store package.

Holds the authoritative, in-process product collection and its data
models. The store never talks to the cache; cache population and
invalidation live in app.cache.coordinator.
"""

from .catalog import CatalogStore, DEFAULT_PRODUCTS
from .models import Product

__all__ = ["CatalogStore", "DEFAULT_PRODUCTS", "Product"]
