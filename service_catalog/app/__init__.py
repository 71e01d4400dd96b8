"""
Catalog Service package.

Serves the product catalog over HTTP from an in-process store, shadowing
reads through Redis with a cache-aside policy:

- app.main: API surface for products, health, readiness and metrics.
- app.store: In-memory product store and models.
- app.cache: Redis adapter and cache-aside coordinator.
- app.health: Health and readiness reporting.

Guidelines:
- The store is the source of truth; cache entries are disposable copies.
- A cache outage degrades latency, never correctness or availability.
"""
