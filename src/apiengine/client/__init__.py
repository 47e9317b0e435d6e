"""Request engines for apiengine.

Provides asynchronous and synchronous engines that wrap :mod:`httpx` with
per-call timeouts, retry with exponential backoff on transport failures,
status-based error classification, and an in-memory TTL cache for GET
calls.

Classes:
    :class:`AsyncEngine` -- non-blocking engine backed by :class:`httpx.AsyncClient`.
    :class:`SyncEngine` -- blocking engine backed by :class:`httpx.Client`.

Both engines accept the same construction parameters and expose the same
verb entry points (``get``, ``post``, ``put``, ``patch``, ``delete``) plus
``request`` and ``clear_cache``.

Example::

    from apiengine.client import AsyncEngine

    async with AsyncEngine("https://api.example.com") as api:
        users = await api.get("/users", cache_ttl=60)
"""

from apiengine.client.async_client import AsyncEngine
from apiengine.client.sync_client import SyncEngine

__all__ = ["AsyncEngine", "SyncEngine"]
