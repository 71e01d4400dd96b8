"""
Shared utilities for the catalog service.

This package aggregates common building blocks consumed by services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace and request correlation
- metrics: Prometheus metrics registry
- tracing: OpenTelemetry tracing config
- errors: Canonical error types and responses
- retry: Retry decorators with backoff
- base_service: FastAPI service skeleton (middleware, handlers, /metrics)

Do not import from service packages into shared/.
"""
