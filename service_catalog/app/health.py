"""
Health and readiness reporting for the Catalog Service.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from shared.errors import CacheUnavailableError
from shared.logging import get_logger

from .cache.redis_cache import RedisCache
from .store import CatalogStore


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthReporter:
    """Process and cache connectivity state for operational probes."""

    def __init__(self, service_name: str, store: CatalogStore, cache: RedisCache):
        self.service_name = service_name
        self.store = store
        self.cache = cache
        self.logger = get_logger("catalog.health")

    async def health(self) -> Tuple[int, Dict[str, Any]]:
        """Ping the cache when connected; a failed ping makes the service unhealthy."""
        redis_status = "disconnected"

        if self.cache.is_available:
            try:
                latency = await self.cache.ping()
            except CacheUnavailableError as e:
                self.logger.error("Health check failed", error=e.message)
                return 503, {
                    "status": "unhealthy",
                    "service": self.service_name,
                    "timestamp": _now(),
                    "error": e.message,
                }
            redis_status = "connected"
            self.logger.debug("Cache ping", latency_ms=round(latency * 1000, 3))

        return 200, {
            "status": "healthy",
            "service": self.service_name,
            "timestamp": _now(),
            "redis": redis_status,
            "productsCount": self.store.count(),
        }

    def readiness(self) -> Dict[str, Any]:
        """Readiness from adapter connectivity alone; never touches the store."""
        return {"ready": True, "redis": self.cache.status}
