"""
Catalog service: product API with a cache-aside Redis layer.
"""

from typing import Any, Optional

from fastapi import Query, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config

from .cache.coordinator import CacheAsideCoordinator
from .cache.redis_cache import RedisCache
from .health import HealthReporter
from .store import CatalogStore
from .store.models import (
    CachedProductResponse,
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    ProductUpdateRequest,
)

SERVICE_NAME = "product-api"


class CatalogService(BaseService):
    """Catalog service implementation."""

    invalid_path_message = "Invalid product ID"

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        store: Optional[CatalogStore] = None,
        redis_client: Optional[Any] = None,
    ):
        super().__init__(SERVICE_NAME, config or get_config(SERVICE_NAME))

        self.store = store if store is not None else CatalogStore()
        if store is None and self.config.seed_catalog:
            self.store.seed()

        self.cache = RedisCache(self.config, self.metrics, client=redis_client)
        self.coordinator = CacheAsideCoordinator(
            self.store, self.cache, self.metrics, self.config.cache_ttl
        )
        self.health_reporter = HealthReporter(SERVICE_NAME, self.store, self.cache)

        self._setup_catalog_routes()

    def _setup_catalog_routes(self):
        """Set up catalog-specific routes."""

        @self.app.get("/")
        async def root():
            return {
                "service": self.service_name,
                "version": "1.0.0",
                "capabilities": ["catalog", "cache_aside", "metrics"],
                "uptime_seconds": round(self.uptime_seconds(), 3),
            }

        @self.app.get("/health")
        async def health():
            status_code, body = await self.health_reporter.health()
            return JSONResponse(status_code=status_code, content=body)

        @self.app.get("/ready")
        async def ready():
            return self.health_reporter.readiness()

        @self.app.get("/products", response_model=ProductListResponse)
        async def list_products(category: Optional[str] = Query(None, description="Filter by category")):
            """List products, optionally filtered by category."""
            result = await self.coordinator.list_products(category or None)
            return ProductListResponse(data=result.data, cached=result.cached, count=len(result.data))

        @self.app.get("/products/{product_id}", response_model=CachedProductResponse)
        async def get_product(product_id: int):
            """Get a product by id."""
            result = await self.coordinator.get_product(product_id)
            return CachedProductResponse(**result.data, cached=result.cached)

        @self.app.post("/products", status_code=201, response_model=ProductResponse)
        async def create_product(request: ProductCreateRequest):
            """Create a product and invalidate affected list caches."""
            product = await self.coordinator.create_product(request.model_dump(exclude_unset=True))
            return product.to_dict()

        @self.app.put("/products/{product_id}", response_model=ProductResponse)
        async def update_product(product_id: int, request: ProductUpdateRequest):
            """Apply the supplied fields and invalidate affected caches."""
            product = await self.coordinator.update_product(
                product_id, request.model_dump(exclude_unset=True)
            )
            return product.to_dict()

        @self.app.delete("/products/{product_id}", status_code=204)
        async def delete_product(product_id: int):
            """Delete a product and invalidate affected caches."""
            await self.coordinator.delete_product(product_id)
            return Response(status_code=204)

    async def start(self):
        """Connect to the cache; the service starts even when Redis is down."""
        await self.cache.connect()
        if self.config.cache_warm_on_startup:
            await self.coordinator.warm_cache()
        self.cache.start_reconnect_loop(self.config.cache_reconnect_interval)
        self.logger.info(
            "Catalog service started",
            products=self.store.count(),
            redis=self.cache.status,
            cache_ttl=self.config.cache_ttl
        )

    async def stop(self):
        await self.cache.close()
        self.logger.info("Catalog service stopped")


def create_app(config: Optional[ServiceConfig] = None):
    """Create catalog service application."""
    service = CatalogService(config)
    return service.app


def main():
    CatalogService().run()


if __name__ == "__main__":
    main()
