"""Canonical Pydantic models shared across all apiengine modules.

The models fall into three groups:

**Request models** -- built per call by the engines:
    :class:`HTTPMethod`, :class:`RequestConfig`, :class:`ApiResponse`.

**Cache models** -- owned by :class:`~apiengine.cache.ResponseCache`:
    :class:`CacheEntry`.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`RequestSettings` and :class:`Profile`.

All durations are expressed in seconds.
"""

from __future__ import annotations

import enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRY_DELAY = 1.0


class HTTPMethod(str, enum.Enum):
    """HTTP verbs the engines know how to dispatch."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


# --- Request models ---


class RequestConfig(BaseModel):
    """Immutable description of a single logical call.

    The method is fixed by the engine entry point that built the config.
    ``headers`` holds only caller-supplied headers; they are merged over
    the engine defaults when the transport request is built.

    Example::

        RequestConfig(method=HTTPMethod.POST, body={"title": "hi"}, retries=2)
    """

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = Field(default=None, description="Payload; ignored for GET")
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Overrides the engine default timeout"
    )
    retries: int = Field(
        default=0, ge=0, description="Additional attempts after a transport failure"
    )
    retry_delay: float = Field(
        default=DEFAULT_RETRY_DELAY, ge=0, description="Delay before the first retry"
    )

    @property
    def sends_body(self) -> bool:
        """Whether the body is attached to the outgoing request."""
        return self.body is not None and self.method != HTTPMethod.GET


class ApiResponse(BaseModel, Generic[T]):
    """Structured result of a successful call."""

    data: T
    status: int
    status_text: str = ""
    headers: dict[str, str] = Field(default_factory=dict)


# --- Cache models ---


class CacheEntry(BaseModel, Generic[T]):
    """A cached payload together with its creation and expiry instants."""

    data: T
    timestamp: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


# --- Configuration models ---


class RequestSettings(BaseModel):
    """Default call options applied to every request made with a profile."""

    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Timeout in seconds")
    retries: int = Field(default=0, ge=0, description="Retry attempts on transport failure")
    retry_delay: float = Field(
        default=DEFAULT_RETRY_DELAY, ge=0, description="Base backoff delay in seconds"
    )
    cache_ttl: Optional[float] = Field(
        default=None, ge=0, description="TTL for cached GET calls; None disables caching"
    )


class Profile(BaseModel):
    """Per-API profile stored as JSON under the ``profiles/`` config directory.

    Each profile bundles the root address of one API with the default
    headers and request settings used to talk to it. Profiles are created
    with ``apiengine profile save`` and loaded with ``--profile``.

    See Also:
        :class:`~apiengine.config.ProfileStore`: Loads, saves and deletes profiles.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base_url: str = Field(description="Root address every endpoint is appended to")
    headers: dict[str, str] = Field(default_factory=dict)
    request: RequestSettings = Field(default_factory=RequestSettings)
