"""
Shared fixtures for Catalog Service tests.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from service_catalog.app.cache.coordinator import CacheAsideCoordinator
from service_catalog.app.cache.redis_cache import RedisCache
from service_catalog.app.main import CatalogService
from service_catalog.app.store import CatalogStore
from shared.config import ServiceConfig
from shared.metrics import MetricsCollector


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis`` (decode_responses=True)."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.fail_with: Optional[BaseException] = None
        self.delay = 0.0
        self.closed = False

    async def _command(self, name: str, *args):
        self.calls.append((name, args))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    def commands(self, name: str) -> List[Tuple[Any, ...]]:
        return [args for op, args in self.calls if op == name]

    async def ping(self):
        await self._command("ping")
        return True

    async def get(self, key):
        await self._command("get", key)
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        await self._command("setex", key, ttl, value)
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys):
        await self._command("delete", *keys)
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def aclose(self):
        self.closed = True


def make_config(**overrides) -> ServiceConfig:
    settings = dict(
        service_name="product-api",
        redis_host="redis.test",
        cache_ttl=300,
        cache_connect_attempts=1,
        cache_operation_timeout=0.2,
        cache_reconnect_interval=0,
        seed_catalog=False,
        log_level="warning",
    )
    settings.update(overrides)
    return ServiceConfig(**settings)


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def metrics():
    return MetricsCollector("product-api")


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store():
    return CatalogStore()


@pytest.fixture
def seeded_store():
    store = CatalogStore()
    store.seed()
    return store


@pytest.fixture
def cache(config, metrics, fake_redis):
    return RedisCache(config, metrics, client=fake_redis)


@pytest.fixture
def coordinator(seeded_store, cache, metrics, config):
    return CacheAsideCoordinator(seeded_store, cache, metrics, config.cache_ttl)


@pytest.fixture
def service(fake_redis):
    return CatalogService(make_config(seed_catalog=True), redis_client=fake_redis)


@pytest.fixture
def client(service):
    with TestClient(service.app) as test_client:
        yield test_client


@pytest.fixture
def degraded_service():
    return CatalogService(make_config(redis_host=None, seed_catalog=True))


@pytest.fixture
def degraded_client(degraded_service):
    with TestClient(degraded_service.app) as test_client:
        yield test_client
