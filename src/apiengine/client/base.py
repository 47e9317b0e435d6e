"""State and helpers shared by :class:`AsyncEngine` and :class:`SyncEngine`.

:class:`BaseEngine` owns the base configuration (root address, default
headers, default timeout and retry policy) and the
:class:`~apiengine.cache.ResponseCache`. It builds immutable
:class:`~apiengine.models.RequestConfig` objects, assembles transport
keyword arguments, and normalises every failure into an
:class:`~apiengine.exceptions.ApiError`. The subclasses only add the
blocking or non-blocking execution around these pieces.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional

import httpx

from apiengine.cache import ResponseCache
from apiengine.exceptions import STATUS_TIMEOUT, STATUS_TRANSPORT_ERROR, ApiError
from apiengine.models import (
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    HTTPMethod,
    Profile,
    RequestConfig,
)

DEFAULT_HEADERS = {"Content-Type": "application/json"}


class BaseEngine:
    """Base configuration and cache shared by both engines.

    Args:
        base_url: Root address every endpoint is appended to. A single
            trailing slash is stripped.
        default_headers: Headers sent with every call. Merged over
            ``Content-Type: application/json``; call-time headers win.
        timeout: Default per-call timeout in seconds.
        retries: Default number of retries after a transport failure.
        retry_delay: Default delay in seconds before the first retry.
        cache_ttl: Default TTL in seconds for GET calls. ``None`` (the
            default) means GET calls are only cached when the caller
            passes ``cache_ttl`` explicitly.
        cache: Cache instance to use. A private one is created when
            omitted.
    """

    def __init__(
        self,
        base_url: str,
        default_headers: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        retries: int = 0,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        cache_ttl: Optional[float] = None,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        self._base_url = base_url[:-1] if base_url.endswith("/") else base_url
        self._default_headers = merge_headers(DEFAULT_HEADERS, default_headers or {})
        self._timeout = timeout
        self._retries = retries
        self._retry_delay = retry_delay
        self._cache_ttl = cache_ttl
        self._cache = cache if cache is not None else ResponseCache()

    @classmethod
    def from_profile(cls, profile: Profile, **kwargs: Any):
        """Create an engine from a stored :class:`~apiengine.models.Profile`.

        Extra keyword arguments (``transport``, ``cache``) are forwarded to
        the constructor.
        """
        settings = profile.request
        return cls(
            profile.base_url,
            profile.headers,
            settings.timeout,
            retries=settings.retries,
            retry_delay=settings.retry_delay,
            cache_ttl=settings.cache_ttl,
            **kwargs,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def default_headers(self) -> dict[str, str]:
        return dict(self._default_headers)

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    def clear_cache(self) -> None:
        """Empty the response cache. Safe to call on an empty cache."""
        self._cache.clear()

    # ------------------------------------------------------------------ #
    # Request assembly
    # ------------------------------------------------------------------ #

    def _build_config(
        self,
        method: HTTPMethod,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ) -> RequestConfig:
        return RequestConfig(
            method=method,
            headers=dict(headers or {}),
            body=body,
            timeout=timeout,
            retries=self._retries if retries is None else retries,
            retry_delay=self._retry_delay if retry_delay is None else retry_delay,
        )

    def _resolve_cache_ttl(self, cache_ttl: Optional[float]) -> float:
        ttl = self._cache_ttl if cache_ttl is None else cache_ttl
        return ttl or 0

    def _resolve_timeout(self, config: RequestConfig) -> float:
        return config.timeout or self._timeout

    def _request_kwargs(self, endpoint: str, config: RequestConfig) -> dict[str, Any]:
        """Build the keyword arguments for ``httpx`` ``request()`` or ``build_request()``."""
        kwargs: dict[str, Any] = {
            "method": config.method.value,
            "url": f"{self._base_url}{endpoint}",
            "headers": merge_headers(self._default_headers, config.headers),
        }
        if config.sends_body:
            kwargs["json"] = config.body
        return kwargs

    # ------------------------------------------------------------------ #
    # Error normalisation
    # ------------------------------------------------------------------ #

    @staticmethod
    def _normalize_error(exc: Exception) -> ApiError:
        """Map any failure raised while executing a call to an :class:`ApiError`.

        An existing ``ApiError`` is returned unchanged. Deadline expiry and
        transport timeouts become status 408; everything else becomes
        status 0 with the original message.
        """
        if isinstance(exc, ApiError):
            return exc
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
            return ApiError("Request timeout", STATUS_TIMEOUT)
        return ApiError(str(exc) or exc.__class__.__name__, STATUS_TRANSPORT_ERROR)


def merge_headers(base: Mapping[str, str], override: Mapping[str, str]) -> dict[str, str]:
    """Merge *override* over *base*, matching header names case-insensitively."""
    merged = dict(base)
    for key, value in override.items():
        for existing in [k for k in merged if k.lower() == key.lower()]:
            del merged[existing]
        merged[key] = value
    return merged
