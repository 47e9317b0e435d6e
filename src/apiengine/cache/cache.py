"""In-memory response caching for GET requests.

Holds successful GET payloads in an instance-owned map with a per-entry
time-to-live (TTL). Entries are evicted lazily: an expired entry is
dropped the next time it is looked up, and there is no background sweep.
Nothing is persisted across process restarts.

Cache keys are SHA-256 hashes of ``METHOD|endpoint|body`` where the body
is JSON-encoded with sorted keys (a missing body encodes as ``{}``), so
identical requests always resolve to the same entry regardless of key
ordering.

See Also:
    :class:`~apiengine.models.CacheEntry` -- the stored record.
"""

from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Any, Callable, Optional

from apiengine.models import CacheEntry, HTTPMethod
from apiengine.output import get_output


class ResponseCache:
    """TTL map from request signature to response payload.

    Only GET signatures are ever stored or served; :meth:`get` and
    :meth:`set` ignore every other method. Map mutation is guarded by a
    lock so one cache can be shared by engines on different threads, but
    two concurrent misses for the same key may both populate it (the last
    write wins).

    Args:
        clock: Returns the current time in seconds. Defaults to
            :func:`time.time`; tests inject a fake clock.

    Example::

        cache = ResponseCache()
        cache.set("GET", "/users", None, [{"id": 1}], ttl=60)
        hit = cache.get("GET", "/users")
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, method: str, endpoint: str, body: Any = None) -> Optional[CacheEntry[Any]]:
        """Look up a live cache entry.

        Args:
            method: HTTP method. Non-GET methods always miss.
            endpoint: The endpoint path the call was made with.
            body: Request body used to form the cache key.

        Returns:
            The :class:`~apiengine.models.CacheEntry` on a hit, or
            ``None`` on a miss or when the entry has expired (in which
            case it is removed).
        """
        if not _is_cacheable(method):
            return None

        key = self.make_key(method, endpoint, body)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None

        get_output().debug(f"hit {method.upper()} {endpoint}", topic="cache")
        return entry

    def set(self, method: str, endpoint: str, body: Any, data: Any, ttl: float) -> None:
        """Store a payload under the request signature.

        Non-GET methods and non-positive TTLs are silently skipped.

        Args:
            method: HTTP method.
            endpoint: The endpoint path the call was made with.
            body: Request body used to form the cache key.
            data: The payload to cache.
            ttl: Time-to-live in seconds.
        """
        if not _is_cacheable(method) or ttl <= 0:
            return

        key = self.make_key(method, endpoint, body)
        now = self._clock()
        entry = CacheEntry(data=data, timestamp=now, expires_at=now + ttl)
        with self._lock:
            self._entries[key] = entry
        get_output().debug(f"stored {method.upper()} {endpoint} (TTL: {ttl}s)", topic="cache")

    def invalidate(self, method: str, endpoint: str, body: Any = None) -> None:
        """Remove a specific cache entry by its key components."""
        key = self.make_key(method, endpoint, body)
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all entries from the cache."""
        with self._lock:
            self._entries.clear()
        get_output().debug("cleared", topic="cache")

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``size`` (stored entries, expired ones
            included until looked up) and ``expired`` (how many of those
            are already past their expiry).
        """
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())
        return {
            "size": len(entries),
            "expired": sum(1 for e in entries if e.is_expired(now)),
        }

    @staticmethod
    def make_key(method: str, endpoint: str, body: Any = None) -> str:
        """Generate a cache key from method, endpoint, and body."""
        encoded_body = json.dumps(body if body is not None else {}, sort_keys=True, default=str)
        raw = "|".join([method.upper(), endpoint, encoded_body])
        return hashlib.sha256(raw.encode()).hexdigest()


def _is_cacheable(method: str) -> bool:
    return method.upper() == HTTPMethod.GET.value
