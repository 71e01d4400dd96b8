"""
Tests for environment-driven configuration and the metrics registry.
"""

import pytest
from pydantic import ValidationError as SettingsError

from shared.config import get_config
from shared.metrics import MetricsCollector


class TestConfig:
    """Test cases for ServiceConfig."""

    def test_defaults(self, monkeypatch):
        for name in ("REDIS_HOST", "PORT", "CACHE_TTL", "CACHE_RECONNECT_INTERVAL"):
            monkeypatch.delenv(name, raising=False)

        config = get_config("product-api")

        assert config.port == 8080
        assert config.cache_ttl == 300
        assert config.redis_port == 6379
        assert config.cache_reconnect_interval == 15
        assert not config.cache_enabled

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("REDIS_HOST", "cache.internal")
        monkeypatch.setenv("REDIS_PORT", "6380")
        monkeypatch.setenv("CACHE_TTL", "60")
        monkeypatch.setenv("PORT", "9000")

        config = get_config("product-api")

        assert config.cache_enabled
        assert config.redis_host == "cache.internal"
        assert config.redis_port == 6380
        assert config.cache_ttl == 60
        assert config.port == 9000

    def test_explicit_port_wins(self, monkeypatch):
        monkeypatch.setenv("PORT", "9000")
        assert get_config("product-api", port=8181).port == 8181

    def test_ttl_must_be_positive(self):
        with pytest.raises(SettingsError):
            get_config("product-api", cache_ttl=0)

    def test_connect_attempts_floor(self):
        assert get_config("product-api", cache_connect_attempts=0).cache_connect_attempts == 1


class TestMetricsCollector:
    """Test cases for MetricsCollector."""

    def test_instances_do_not_share_registries(self):
        first = MetricsCollector("product-api")
        second = MetricsCollector("product-api")

        first.record_cache_hit("product")

        assert first.sample("cache_hits_total", key_type="product") == 1
        assert second.sample("cache_hits_total", key_type="product") == 0

    def test_http_request_is_counted_and_timed(self):
        metrics = MetricsCollector("product-api")

        metrics.record_http_request("GET", "/products", 200, 0.02)

        labels = {"method": "GET", "route": "/products", "status_code": "200"}
        assert metrics.sample("http_requests_total", **labels) == 1
        assert metrics.sample("http_request_duration_seconds_count", **labels) == 1
        assert metrics.sample("http_request_duration_seconds_bucket", le="0.05", **labels) == 1

    def test_cache_operation_timer_records_on_error(self):
        metrics = MetricsCollector("product-api")

        with pytest.raises(RuntimeError):
            with metrics.time_cache_operation("get"):
                raise RuntimeError("boom")

        assert metrics.sample("cache_operation_duration_seconds_count", operation="get") == 1

    def test_export(self):
        metrics = MetricsCollector("product-api")
        metrics.record_cache_miss("product_list")

        payload, content_type = metrics.export()

        assert content_type.startswith("text/plain")
        assert b'cache_misses_total{key_type="product_list"} 1.0' in payload
        assert b'service_info{service="product-api",version="1.0.0"} 1.0' in payload
