"""apiengine -- a generic HTTP API client with timeouts, retries, and caching.

The core is the request engine: verb entry points (``get``, ``post``,
``put``, ``patch``, ``delete``) that dispatch a call through :mod:`httpx`
with a per-call timeout, retry transport failures with exponential
backoff, classify every failure into an :class:`~apiengine.exceptions.ApiError`
by status, and serve GET calls from an in-memory TTL cache when asked to.

Typical use::

    from apiengine import AsyncEngine

    async with AsyncEngine("https://jsonplaceholder.typicode.com") as api:
        users = await api.get("/users", cache_ttl=60)

Modules:
    client: :class:`AsyncEngine` and :class:`SyncEngine`.
    cache: The in-memory :class:`~apiengine.cache.ResponseCache`.
    models: Pydantic models shared across the package.
    services: Typed users/posts service layer.
    config: XDG-aware profile storage and resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from apiengine.client import AsyncEngine, SyncEngine  # noqa: E402
from apiengine.exceptions import ApiError  # noqa: E402

__all__ = ["AsyncEngine", "SyncEngine", "ApiError", "__version__"]
