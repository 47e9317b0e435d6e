"""Asynchronous request engine backed by :class:`httpx.AsyncClient`.

This module provides :class:`AsyncEngine`, the primary engine. Every verb
entry point builds an immutable :class:`~apiengine.models.RequestConfig`
and runs it through :meth:`AsyncEngine.request`, which:

- bounds the whole call (every attempt and every backoff sleep) by the
  per-call timeout using :func:`asyncio.wait_for`, cancelling the
  in-flight transport call when it elapses;
- retries transport failures with exponential backoff (``delay``,
  ``2 * delay``, ``4 * delay``, ...) via :func:`asyncio.sleep`;
- classifies the outcome into an :class:`~apiengine.models.ApiResponse`
  or an :class:`~apiengine.exceptions.ApiError`.

GET calls made with a ``cache_ttl`` are served from and saved to the
engine's :class:`~apiengine.cache.ResponseCache`.

See Also:
    :class:`~apiengine.client.sync_client.SyncEngine` for the blocking
    equivalent.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Mapping, Optional

import httpx

from apiengine.client.base import BaseEngine
from apiengine.client.response import to_api_response
from apiengine.exceptions import ApiError
from apiengine.models import ApiResponse, HTTPMethod, RequestConfig
from apiengine.output import get_output


class AsyncEngine(BaseEngine):
    """Asynchronous request engine with timeout, retry, and GET caching.

    Can be used as an async context manager, or directly; in the latter
    case the underlying :class:`httpx.AsyncClient` is created on first use
    and released by :meth:`aclose`.

    Args:
        base_url: Root address every endpoint is appended to.
        default_headers: Headers sent with every call.
        timeout: Default per-call timeout in seconds.
        transport: Optional :mod:`httpx` transport (tests pass an
            :class:`httpx.MockTransport`).
        **kwargs: Forwarded to :class:`~apiengine.client.base.BaseEngine`
            (``retries``, ``retry_delay``, ``cache_ttl``, ``cache``).

    Example::

        async with AsyncEngine("https://jsonplaceholder.typicode.com") as api:
            users = await api.get("/users", cache_ttl=60)
            post = await api.post("/posts", {"userId": 1, "title": "hi", "body": "..."})
    """

    def __init__(
        self,
        base_url: str,
        default_headers: Optional[Mapping[str, str]] = None,
        timeout: float = 30.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(base_url, default_headers, timeout, **kwargs)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncEngine:
        self._get_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient`, if one is open."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def get(
        self,
        endpoint: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        cache_ttl: Optional[float] = None,
    ) -> Any:
        """Send a GET request, optionally serving it from the cache.

        Args:
            endpoint: Path appended to the engine's base URL.
            headers: Extra headers, overriding engine defaults.
            timeout: Per-call timeout in seconds.
            retries: Retries after a transport failure.
            retry_delay: Delay in seconds before the first retry.
            cache_ttl: Cache the payload for this many seconds. ``0``
                bypasses the cache. ``None`` falls back to the engine
                default, which is itself ``None`` unless the engine or its
                profile opted in, so a plain ``get`` goes to the network.
                Cache hits return a copy of the stored payload.

        Returns:
            The parsed response payload.

        Raises:
            ApiError: On timeout (408), transport failure (0), or a
                non-success status from the server.
        """
        config = self._build_config(HTTPMethod.GET, None, headers, timeout, retries, retry_delay)
        ttl = self._resolve_cache_ttl(cache_ttl)
        if ttl <= 0:
            return (await self.request(endpoint, config)).data

        entry = self._cache.get(config.method.value, endpoint, config.body)
        if entry is not None:
            return copy.deepcopy(entry.data)

        response = await self.request(endpoint, config)
        self._cache.set(
            config.method.value, endpoint, config.body, copy.deepcopy(response.data), ttl
        )
        return response.data

    async def post(self, endpoint: str, body: Any, **kwargs: Any) -> Any:
        """Send a POST request with a JSON body.

        Args:
            endpoint: Path appended to the engine's base URL.
            body: JSON-serialisable payload.
            **kwargs: ``headers``, ``timeout``, ``retries``, ``retry_delay``.

        Returns:
            The parsed response payload.
        """
        config = self._build_config(HTTPMethod.POST, body, **kwargs)
        return (await self.request(endpoint, config)).data

    async def put(self, endpoint: str, body: Any, **kwargs: Any) -> Any:
        """Send a PUT request with a JSON body. See :meth:`post`."""
        config = self._build_config(HTTPMethod.PUT, body, **kwargs)
        return (await self.request(endpoint, config)).data

    async def patch(self, endpoint: str, body: Any, **kwargs: Any) -> Any:
        """Send a PATCH request carrying a partial resource. See :meth:`post`."""
        config = self._build_config(HTTPMethod.PATCH, body, **kwargs)
        return (await self.request(endpoint, config)).data

    async def delete(self, endpoint: str, **kwargs: Any) -> Any:
        """Send a DELETE request. Returns ``None`` for an empty response body."""
        config = self._build_config(HTTPMethod.DELETE, None, **kwargs)
        return (await self.request(endpoint, config)).data

    async def request(self, endpoint: str, config: RequestConfig) -> ApiResponse[Any]:
        """Execute one logical call end to end. Never consults the cache.

        Args:
            endpoint: Path appended to the engine's base URL.
            config: The immutable call description.

        Returns:
            The structured :class:`~apiengine.models.ApiResponse`.

        Raises:
            ApiError: Every failure, normalised by status.
        """
        try:
            response = await asyncio.wait_for(
                self._send_with_retry(endpoint, config),
                timeout=self._resolve_timeout(config),
            )
            return to_api_response(response)
        except ApiError:
            raise
        except Exception as exc:
            raise self._normalize_error(exc) from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # Deadlines are enforced by wait_for, not by httpx.
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=None,
                follow_redirects=True,
            )
        return self._client

    async def _send_with_retry(self, endpoint: str, config: RequestConfig) -> httpx.Response:
        """Send the request, retrying transport failures with exponential backoff.

        Timeouts are not retried. HTTP error statuses are returned, not
        retried.
        """
        client = self._get_client()
        kwargs = self._request_kwargs(endpoint, config)
        attempts_left = config.retries
        delay = config.retry_delay

        while True:
            try:
                return await client.request(**kwargs)
            except httpx.TimeoutException:
                raise
            except httpx.TransportError as exc:
                if attempts_left <= 0:
                    raise
                get_output().debug(
                    f"{config.method.value} {endpoint} failed ({exc}), "
                    f"next attempt in {delay}s, {attempts_left} left",
                    topic="retry",
                )
                await asyncio.sleep(delay)
                attempts_left -= 1
                delay *= 2
