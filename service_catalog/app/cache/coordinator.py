"""
Cache-aside coordination between the catalog store and Redis.

Read path: look up the cache, fall back to the store on a miss (or when
the cache is unavailable) and repopulate the key with the configured TTL.

Write path: mutate the store first, then delete every cache key the
mutation could have made stale. Keys are repopulated lazily by the next
read, so a lost invalidation is bounded by the TTL.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from shared.errors import CacheUnavailableError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.tracing import get_tracer

from ..store import CatalogStore, Product
from .redis_cache import RedisCache

ALL_PRODUCTS_KEY = "products:all"

KEY_TYPE_PRODUCT = "product"
KEY_TYPE_LIST = "product_list"
KEY_TYPE_CATEGORY = "product_category"


def product_key(product_id: int) -> str:
    return f"product:{product_id}"


def category_key(category: str) -> str:
    return f"products:category:{category}"


def list_key(category: Optional[str] = None) -> str:
    return ALL_PRODUCTS_KEY if category is None else category_key(category)


@dataclass
class CacheLookup:
    """Result of a read-through lookup."""
    data: Any
    cached: bool


class CacheAsideCoordinator:
    """Single read-through / invalidate-on-write implementation for all routes."""

    def __init__(self, store: CatalogStore, cache: RedisCache, metrics: MetricsCollector, ttl_seconds: int):
        self.store = store
        self.cache = cache
        self.metrics = metrics
        self.ttl_seconds = ttl_seconds
        self.logger = get_logger("catalog.cache.coordinator")
        self.tracer = get_tracer(__name__)

    # Read path

    async def list_products(self, category: Optional[str] = None) -> CacheLookup:
        key = list_key(category)
        key_type = KEY_TYPE_LIST if category is None else KEY_TYPE_CATEGORY

        cached, available = await self._read(key, key_type)
        if cached is not None:
            self.logger.info("Cache hit for product list", category=category, count=len(cached))
            return CacheLookup(data=cached, cached=True)

        products = [p.to_dict() for p in self.store.list(category)]
        if available:
            await self._populate(key, products)

        self.logger.info("Retrieved products from store", category=category, count=len(products))
        return CacheLookup(data=products, cached=False)

    async def get_product(self, product_id: int) -> CacheLookup:
        """Product by id. Raises ``NotFoundError`` when the store has no such id."""
        key = product_key(product_id)

        cached, available = await self._read(key, KEY_TYPE_PRODUCT)
        if cached is not None:
            self.logger.info("Cache hit for product", product_id=product_id)
            return CacheLookup(data=cached, cached=True)

        product = self.store.get(product_id).to_dict()
        if available:
            await self._populate(key, product)

        self.logger.info("Retrieved product from store", product_id=product_id)
        return CacheLookup(data=product, cached=False)

    async def _read(self, key: str, key_type: str) -> Tuple[Optional[Any], bool]:
        """Return ``(payload, available)``.

        ``payload`` is ``None`` on a miss and whenever the cache could not be
        used; ``available`` is False in the latter case, so callers skip the
        write-back. Only genuine misses are counted.
        """
        if not self.cache.is_available:
            return None, False

        with self.tracer.start_as_current_span("cache_lookup") as span:
            span.set_attribute("cache.key", key)
            try:
                raw = await self.cache.get(key)
            except CacheUnavailableError as e:
                span.set_attribute("cache.available", False)
                self.logger.warning("Cache read skipped, falling back to store", key=key, error=e.message)
                return None, False

            if raw is None:
                span.set_attribute("cache.hit", False)
                self.metrics.record_cache_miss(key_type)
                return None, True

            try:
                payload = json.loads(raw)
            except ValueError:
                # Overwritten by the repopulation that follows the miss
                span.set_attribute("cache.hit", False)
                self.metrics.record_cache_miss(key_type)
                self.logger.warning("Discarding corrupt cache entry", key=key)
                return None, True

            span.set_attribute("cache.hit", True)
            self.metrics.record_cache_hit(key_type)
            return payload, True

    async def _populate(self, key: str, payload: Any):
        if not self.cache.is_available:
            return
        try:
            await self.cache.set_with_expiry(key, json.dumps(payload), self.ttl_seconds)
        except CacheUnavailableError as e:
            self.logger.warning("Failed to populate cache", key=key, error=e.message)

    # Write path

    async def create_product(self, fields: Mapping[str, Any]) -> Product:
        product = self.store.create(fields)
        await self._invalidate(self._stale_keys(product.id, {product.category}))
        self.logger.info("Created product", product_id=product.id, name=product.name, category=product.category)
        return product

    async def update_product(self, product_id: int, changes: Mapping[str, Any]) -> Product:
        # No await between the snapshot and the mutation
        old_category = self.store.get(product_id).category
        product = self.store.update(product_id, changes)

        await self._invalidate(self._stale_keys(product_id, {old_category, product.category}))
        self.logger.info(
            "Updated product",
            product_id=product_id,
            fields=sorted(changes),
            category_changed=old_category != product.category
        )
        return product

    async def delete_product(self, product_id: int) -> Product:
        product = self.store.delete(product_id)
        await self._invalidate(self._stale_keys(product_id, {product.category}))
        self.logger.info("Deleted product", product_id=product_id)
        return product

    @staticmethod
    def _stale_keys(product_id: int, categories: Iterable[str]) -> List[str]:
        keys = [product_key(product_id), ALL_PRODUCTS_KEY]
        keys.extend(category_key(c) for c in sorted(set(categories)))
        return keys

    async def _invalidate(self, keys: List[str]):
        if not self.cache.is_available:
            self.logger.debug("Cache unavailable, skipping invalidation", keys=keys)
            return
        try:
            await self.cache.delete(*keys)
        except CacheUnavailableError as e:
            # Entries expire after the TTL even if this delete was lost
            self.logger.warning("Cache invalidation failed", keys=keys, error=e.message)

    # Warm-up

    async def warm_cache(self) -> Dict[str, int]:
        """Preload ``products:all`` and every ``product:<id>`` key.

        Optional; reads repopulate lazily without it.
        """
        summary = {"written": 0, "failed": 0}
        if not self.cache.is_available:
            return summary

        products = self.store.list()
        entries: Dict[str, Any] = {ALL_PRODUCTS_KEY: [p.to_dict() for p in products]}
        entries.update({product_key(p.id): p.to_dict() for p in products})

        self.logger.info("Warming cache with product data", count=len(products))
        for key, payload in entries.items():
            try:
                await self.cache.set_with_expiry(key, json.dumps(payload), self.ttl_seconds)
                summary["written"] += 1
            except CacheUnavailableError as e:
                summary["failed"] += 1
                self.logger.error("Failed to warm cache", key=key, error=e.message)
                if not self.cache.is_available:
                    break

        self.logger.info("Cache warmed", **summary)
        return summary
