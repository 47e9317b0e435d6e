"""In-memory response caching for apiengine.

This package provides :class:`ResponseCache`, the TTL map consulted by the
engines for GET calls made with a ``cache_ttl``. Entries are keyed by HTTP
method, endpoint, and body, and live only as long as the cache instance.
"""

from apiengine.cache.cache import ResponseCache

__all__ = ["ResponseCache"]
