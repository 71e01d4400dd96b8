"""
In-memory catalog store.

The store is the single source of truth for products. Every operation is
synchronous and completes without yielding to the event loop, so a
mutation is never observed half-applied by another request.
"""

import math
from dataclasses import replace
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Optional

from shared.errors import NotFoundError, ValidationError
from shared.logging import get_logger

from .models import Product

UPDATABLE_FIELDS = ("name", "description", "price", "category", "stock")

DEFAULT_PRODUCTS: List[Dict[str, Any]] = [
    {"name": "Laptop", "description": "High-performance laptop", "price": 1299.99, "category": "electronics", "stock": 50},
    {"name": "Wireless Mouse", "description": "Ergonomic wireless mouse", "price": 29.99, "category": "electronics", "stock": 200},
    {"name": "Mechanical Keyboard", "description": "RGB mechanical keyboard", "price": 149.99, "category": "electronics", "stock": 75},
    {"name": "USB-C Hub", "description": "7-in-1 USB-C hub", "price": 49.99, "category": "accessories", "stock": 150},
    {"name": "Monitor Stand", "description": "Adjustable monitor stand", "price": 79.99, "category": "accessories", "stock": 100},
    {"name": "Headphones", "description": "Noise-cancelling headphones", "price": 299.99, "category": "audio", "stock": 60},
    {"name": "Webcam", "description": "1080p webcam", "price": 89.99, "category": "electronics", "stock": 120},
    {"name": "Desk Lamp", "description": "LED desk lamp", "price": 39.99, "category": "accessories", "stock": 180},
    {"name": "External SSD", "description": "1TB external SSD", "price": 159.99, "category": "storage", "stock": 90},
    {"name": "Phone Stand", "description": "Adjustable phone stand", "price": 19.99, "category": "accessories", "stock": 250},
]


def _validate_name(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string", {"field": field})
    return value


def _validate_price(value: Any):
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value) or value <= 0:
        raise ValidationError("price must be a positive number", {"field": "price"})
    return value


def _validate_stock(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("stock must be a non-negative integer", {"field": "stock"})
    return value


def _validate_description(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("description must be a string", {"field": "description"})
    return value


_VALIDATORS = {
    "name": lambda v: _validate_name("name", v),
    "category": lambda v: _validate_name("category", v),
    "price": _validate_price,
    "stock": _validate_stock,
    "description": _validate_description,
}


class CatalogStore:
    """Authoritative in-process product collection."""

    def __init__(self):
        self.logger = get_logger("catalog.store")
        self._products: Dict[int, Product] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._products)

    def count(self) -> int:
        return len(self._products)

    @property
    def next_id(self) -> int:
        return self._next_id

    def seed(self, products: Iterable[Mapping[str, Any]] = DEFAULT_PRODUCTS) -> List[Product]:
        """Load products through the normal create path."""
        created = [self.create(fields) for fields in products]
        self.logger.info("Catalog seeded", count=len(created), next_id=self._next_id)
        return created

    def list(self, category: Optional[str] = None) -> List[Product]:
        """All products in insertion order, optionally filtered by category."""
        return [
            replace(product)
            for product in self._products.values()
            if category is None or product.category == category
        ]

    def get(self, product_id: int) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found", {"product_id": product_id})
        return replace(product)

    def create(self, fields: Mapping[str, Any]) -> Product:
        missing = [name for name in ("name", "price", "category") if fields.get(name) is None]
        if missing:
            raise ValidationError(
                f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required",
                {"missing": missing}
            )

        stock = fields.get("stock")
        product = Product(
            id=self._next_id,
            name=_validate_name("name", fields["name"]),
            price=_validate_price(fields["price"]),
            category=_validate_name("category", fields["category"]),
            description=_validate_description(fields.get("description")),
            stock=0 if stock is None else _validate_stock(stock),
        )

        self._products[product.id] = product
        self._next_id += 1
        return replace(product)

    def update(self, product_id: int, changes: Mapping[str, Any]) -> Product:
        """Apply a partial update. Nothing is mutated if any field is invalid."""
        current = self._products.get(product_id)
        if current is None:
            raise NotFoundError("Product not found", {"product_id": product_id})

        validated = {
            field: _VALIDATORS[field](value)
            for field, value in changes.items()
            if field in UPDATABLE_FIELDS
        }

        updated = replace(current, **validated)
        self._products[product_id] = updated
        return replace(updated)

    def delete(self, product_id: int) -> Product:
        """Remove a product and return it. Its id is never handed out again."""
        product = self._products.pop(product_id, None)
        if product is None:
            raise NotFoundError("Product not found", {"product_id": product_id})
        return product
