"""Synchronous request engine backed by :class:`httpx.Client`.

This module provides :class:`SyncEngine`, the blocking mirror of
:class:`~apiengine.client.async_client.AsyncEngine` with the same verb
entry points, cache, retry and error semantics:

- **Deadline** -- the per-call timeout bounds every attempt, every
  backoff sleep and the reading of the response body. The remaining budget
  is handed to :mod:`httpx` as the timeout of each attempt. The body is
  streamed and the deadline checked after every chunk, since httpx only
  limits the gap between reads. A retry whose delay would overrun the
  deadline is abandoned as a timeout.
- **Retry with backoff** -- transport failures are retried with
  exponential delay (``delay``, ``2 * delay``, ...) via :func:`time.sleep`.
- **Response caching** -- GET calls with a ``cache_ttl`` use the engine's
  :class:`~apiengine.cache.ResponseCache`, which is thread-safe.

See Also:
    :class:`~apiengine.client.async_client.AsyncEngine` for the
    non-blocking implementation.
"""

from __future__ import annotations

import copy
import time
from typing import Any, Iterator, Mapping, Optional

import httpx

from apiengine.client.base import BaseEngine
from apiengine.client.response import to_api_response
from apiengine.exceptions import ApiError
from apiengine.models import ApiResponse, HTTPMethod, RequestConfig
from apiengine.output import get_output


class _DeadlineStream(httpx.SyncByteStream):
    """Body stream that stops with :class:`TimeoutError` once *deadline* passes.

    The check runs between chunks, so a call can overrun by at most one
    read, which httpx itself bounds by the remaining timeout.
    """

    def __init__(self, stream: httpx.SyncByteStream, deadline: float) -> None:
        self._stream = stream
        self._deadline = deadline

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._stream:
            if time.monotonic() >= self._deadline:
                raise TimeoutError("Request timeout")
            yield chunk

    def close(self) -> None:
        self._stream.close()


class SyncEngine(BaseEngine):
    """Blocking request engine with timeout, retry, and GET caching.

    Args:
        base_url: Root address every endpoint is appended to.
        default_headers: Headers sent with every call.
        timeout: Default per-call timeout in seconds.
        transport: Optional :mod:`httpx` transport.
        **kwargs: Forwarded to :class:`~apiengine.client.base.BaseEngine`.

    Example::

        with SyncEngine("https://jsonplaceholder.typicode.com") as api:
            users = api.get("/users", cache_ttl=60)
    """

    def __init__(
        self,
        base_url: str,
        default_headers: Optional[Mapping[str, str]] = None,
        timeout: float = 30.0,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(base_url, default_headers, timeout, **kwargs)
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SyncEngine:
        self._get_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client`, if one is open."""
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def get(
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

        See :meth:`AsyncEngine.get <apiengine.client.async_client.AsyncEngine.get>`.
        """
        config = self._build_config(HTTPMethod.GET, None, headers, timeout, retries, retry_delay)
        ttl = self._resolve_cache_ttl(cache_ttl)
        if ttl <= 0:
            return self.request(endpoint, config).data

        entry = self._cache.get(config.method.value, endpoint, config.body)
        if entry is not None:
            return copy.deepcopy(entry.data)

        response = self.request(endpoint, config)
        self._cache.set(
            config.method.value, endpoint, config.body, copy.deepcopy(response.data), ttl
        )
        return response.data

    def post(self, endpoint: str, body: Any, **kwargs: Any) -> Any:
        """Send a POST request with a JSON body."""
        return self.request(endpoint, self._build_config(HTTPMethod.POST, body, **kwargs)).data

    def put(self, endpoint: str, body: Any, **kwargs: Any) -> Any:
        """Send a PUT request with a JSON body."""
        return self.request(endpoint, self._build_config(HTTPMethod.PUT, body, **kwargs)).data

    def patch(self, endpoint: str, body: Any, **kwargs: Any) -> Any:
        """Send a PATCH request carrying a partial resource."""
        return self.request(endpoint, self._build_config(HTTPMethod.PATCH, body, **kwargs)).data

    def delete(self, endpoint: str, **kwargs: Any) -> Any:
        """Send a DELETE request."""
        return self.request(endpoint, self._build_config(HTTPMethod.DELETE, None, **kwargs)).data

    def request(self, endpoint: str, config: RequestConfig) -> ApiResponse[Any]:
        """Execute one logical call end to end. Never consults the cache.

        Raises:
            ApiError: Every failure, normalised by status.
        """
        try:
            response = self._send_with_retry(endpoint, config)
            return to_api_response(response)
        except ApiError:
            raise
        except Exception as exc:
            raise self._normalize_error(exc) from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                transport=self._transport,
                timeout=self._timeout,
                follow_redirects=True,
            )
        return self._client

    def _send_with_retry(self, endpoint: str, config: RequestConfig) -> httpx.Response:
        """Send the request within the call deadline, retrying transport failures."""
        client = self._get_client()
        kwargs = self._request_kwargs(endpoint, config)
        deadline = time.monotonic() + self._resolve_timeout(config)
        attempts_left = config.retries
        delay = config.retry_delay

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError("Request timeout")
            try:
                request = client.build_request(**kwargs, timeout=remaining)
                return self._read_within(client, request, deadline)
            except httpx.TimeoutException:
                raise
            except httpx.TransportError as exc:
                if attempts_left <= 0:
                    raise
                if time.monotonic() + delay >= deadline:
                    raise TimeoutError("Request timeout") from exc
                get_output().debug(
                    f"{config.method.value} {endpoint} failed ({exc}), "
                    f"next attempt in {delay}s, {attempts_left} left",
                    topic="retry",
                )
                time.sleep(delay)
                attempts_left -= 1
                delay *= 2

    @staticmethod
    def _read_within(
        client: httpx.Client, request: httpx.Request, deadline: float
    ) -> httpx.Response:
        response = client.send(request, stream=True)
        response.stream = _DeadlineStream(response.stream, deadline)
        try:
            response.read()
        finally:
            response.close()
        return response
