"""
Cache package for the Catalog Service.

Provides a Redis client adapter that reports unavailability explicitly
instead of failing callers, and the cache-aside coordinator that keeps
cached product snapshots consistent with the store.
"""
