"""
Shared configuration management for the catalog service.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Cache (Redis). No host means the service runs without a cache.
    redis_host: Optional[str] = Field(default=None)
    redis_port: int = Field(default=6379)
    redis_password: Optional[str] = Field(default=None)
    redis_db: int = Field(default=0)
    cache_ttl: int = Field(default=300)
    cache_operation_timeout: float = Field(default=1.0)
    cache_connect_timeout: float = Field(default=2.0)
    cache_connect_attempts: int = Field(default=3)
    cache_reconnect_interval: float = Field(default=15.0)
    cache_warm_on_startup: bool = Field(default=False)

    # Catalog
    seed_catalog: bool = Field(default=True)

    # Observability
    enable_tracing: bool = Field(default=False)
    otel_exporter: str = Field(default="http://localhost:4317")

    @field_validator("cache_ttl")
    @classmethod
    def _positive_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("cache_ttl must be positive")
        return value

    @field_validator("cache_connect_attempts")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        return max(1, value)

    @property
    def cache_enabled(self) -> bool:
        return bool(self.redis_host)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "product-api"
    port: int = 8080
    host: str = "0.0.0.0"


def get_config(service_name: str, port: Optional[int] = None, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    if port is not None:
        overrides["port"] = port
    return ServiceConfig(service_name=service_name, **overrides)
