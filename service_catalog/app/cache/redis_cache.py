"""
Redis client adapter for the Catalog Service.
"""

import asyncio
import time
from typing import Any, Awaitable, Optional

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from shared.config import BaseConfig
from shared.errors import CacheUnavailableError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, RetryError, retry_on_exception


class RedisCache:
    """Connection to the remote key-value cache.

    Callers see three outcomes for a read: a value, ``None`` for a miss, or
    :class:`CacheUnavailableError` when the cache is disconnected, failing
    or too slow. Unavailability is never reported as a miss.
    """

    def __init__(
        self,
        config: BaseConfig,
        metrics: MetricsCollector,
        client: Optional[Any] = None,
    ):
        self.config = config
        self.metrics = metrics
        self.logger = get_logger("catalog.cache.redis")
        self.redis: Optional[Any] = client
        self.operation_timeout = config.cache_operation_timeout

        self._connected = False
        self._reconnect_lock = asyncio.Lock()
        self._reconnect_task: Optional[asyncio.Task] = None

    @property
    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    @property
    def status(self) -> str:
        return "connected" if self.is_available else "disconnected"

    def _build_client(self):
        return redis.Redis(
            host=self.config.redis_host,
            port=self.config.redis_port,
            password=self.config.redis_password,
            db=self.config.redis_db,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=self.config.cache_connect_timeout,
            socket_timeout=self.operation_timeout,
        )

    async def connect(self) -> bool:
        """Connect and verify with PING. Never raises; failure leaves the adapter disconnected."""
        if self.redis is None:
            if not self.config.cache_enabled:
                self.logger.info("No cache host configured; serving from store only")
                return False
            self.redis = self._build_client()

        retry_config = RetryConfig(
            max_attempts=self.config.cache_connect_attempts,
            base_delay=0.5,
            max_delay=5.0,
        )

        @retry_on_exception((RedisError, OSError, asyncio.TimeoutError), retry_config)
        async def _ping():
            await asyncio.wait_for(self.redis.ping(), timeout=self.config.cache_connect_timeout)

        try:
            await _ping()
        except RetryError as e:
            self._connected = False
            self.logger.error(
                "Failed to connect to Redis",
                host=self.config.redis_host,
                port=self.config.redis_port,
                attempts=e.attempts,
                error=str(e.last_exception)
            )
            return False

        self._connected = True
        self.logger.info("Connected to Redis", host=self.config.redis_host, port=self.config.redis_port)
        return True

    async def reconnect(self) -> bool:
        """Re-run :meth:`connect`; concurrent callers share a single attempt."""
        if self._reconnect_lock.locked():
            async with self._reconnect_lock:
                return self.is_available

        async with self._reconnect_lock:
            if self.is_available:
                return True
            self.logger.warning("Reconnecting to Redis")
            return await self.connect()

    async def run_reconnect_loop(self, interval: float):
        """Retry the connection every ``interval`` seconds while disconnected."""
        while True:
            await asyncio.sleep(interval)
            if not self.is_available and self.config.cache_enabled:
                await self.reconnect()

    def start_reconnect_loop(self, interval: float) -> Optional[asyncio.Task]:
        if interval <= 0 or not self.config.cache_enabled:
            return None
        self._reconnect_task = asyncio.create_task(self.run_reconnect_loop(interval))
        return self._reconnect_task

    async def close(self):
        """Stop reconnecting and close the client."""
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            try:
                await self._reconnect_task
            except asyncio.CancelledError:
                pass
            self._reconnect_task = None

        if self.redis is not None:
            try:
                await self.redis.aclose()
            except RedisError as e:
                self.logger.warning("Error closing Redis client", error=str(e))
            self.logger.info("Redis cache stopped")
        self._connected = False

    async def _execute(self, operation: str, call: Awaitable[Any]) -> Any:
        """Run one remote command, timed and bounded by the operation timeout."""
        with self.metrics.time_cache_operation(operation):
            try:
                return await asyncio.wait_for(call, timeout=self.operation_timeout)
            # TimeoutError subclasses OSError, so it must be matched first
            except (asyncio.TimeoutError, RedisTimeoutError) as e:
                self.metrics.record_cache_error(operation)
                self.logger.warning("Redis operation timed out", operation=operation, timeout=self.operation_timeout)
                raise CacheUnavailableError(f"cache {operation} timed out") from e
            except (RedisConnectionError, OSError) as e:
                self._connected = False
                self.metrics.record_cache_error(operation)
                self.logger.warning("Lost connection to Redis", operation=operation, error=str(e))
                raise CacheUnavailableError(f"cache {operation} failed: {e}") from e
            except RedisError as e:
                self.metrics.record_cache_error(operation)
                self.logger.warning("Redis operation failed", operation=operation, error=str(e))
                raise CacheUnavailableError(f"cache {operation} failed: {e}") from e

    def _require_available(self, operation: str):
        if not self.is_available:
            raise CacheUnavailableError(f"cache unavailable for {operation}")

    async def get(self, key: str) -> Optional[str]:
        """Cached value for ``key``, or ``None`` on a miss."""
        self._require_available("get")
        return await self._execute("get", self.redis.get(key))

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        self._require_available("set")
        await self._execute("set", self.redis.setex(key, ttl_seconds, value))

    async def delete(self, *keys: str) -> int:
        """Delete keys in a single DEL; returns how many existed."""
        self._require_available("del")
        if not keys:
            return 0
        return await self._execute("del", self.redis.delete(*keys))

    async def ping(self) -> float:
        """Round-trip latency in seconds."""
        self._require_available("ping")
        start = time.perf_counter()
        await self._execute("ping", self.redis.ping())
        return time.perf_counter() - start
