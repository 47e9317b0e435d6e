"""Exception hierarchy for apiengine.

All exceptions inherit from :class:`ApiEngineError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apiengine.exit_codes`.
The CLI entry point in :func:`apiengine.app.main` catches
``ApiEngineError`` and exits with the appropriate code.

Request failures are represented by a single shape, :class:`ApiError`,
differentiated only by ``status``:

=========  ==================================================
status     meaning
=========  ==================================================
``0``      transport failure (after retries) or unknown error
``408``    the per-call timeout elapsed before completion
other      a reachable server answered with that status
=========  ==================================================

Subclass hierarchy::

    ApiEngineError      (exit 1)
    +-- ApiError        (exit derived from status)
    +-- ConfigError     (exit 1)
    +-- InvalidUsageError (exit 2)
"""

from __future__ import annotations

from typing import Any

from apiengine.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

STATUS_TRANSPORT_ERROR = 0
STATUS_TIMEOUT = 408


class ApiEngineError(Exception):
    """Base exception for all apiengine errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ApiError(ApiEngineError):
    """Raised for every failed API call.

    Callers discriminate on :attr:`status` rather than on exception type.
    Timeouts and transport failures are worth retrying at a higher level;
    statuses returned by a reachable server usually are not.

    Args:
        message: Description of the failure (``"Request timeout"``,
            ``"HTTP 404: Not Found"``, or the transport's own message).
        status: ``0`` for transport / unknown failures, ``408`` for
            timeouts, otherwise the HTTP status code.
        response: The parsed error body returned by the server, if any.
    """

    def __init__(self, message: str, status: int, response: Any = None):
        super().__init__(message)
        self.status = status
        self.response = response
        self.exit_code = _exit_code_for_status(status)

    @property
    def is_timeout(self) -> bool:
        """Whether the call was aborted by its timeout."""
        return self.status == STATUS_TIMEOUT

    @property
    def is_transport_error(self) -> bool:
        """Whether the call could not be completed at all."""
        return self.status == STATUS_TRANSPORT_ERROR

    @property
    def is_server_error(self) -> bool:
        """Whether a reachable server answered with a non-success status."""
        return self.status not in (STATUS_TRANSPORT_ERROR, STATUS_TIMEOUT)

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, message={self.message!r})"


class ConfigError(ApiEngineError):
    """Raised for configuration problems (missing profiles, invalid JSON)."""

    exit_code = EXIT_GENERIC_FAILURE


class InvalidUsageError(ApiEngineError):
    """Raised for malformed CLI input such as a non-JSON ``--body``."""

    exit_code = EXIT_INVALID_USAGE


def _exit_code_for_status(status: int) -> int:
    if status in (STATUS_TRANSPORT_ERROR, STATUS_TIMEOUT):
        return EXIT_CONNECTION_ERROR
    if status in (401, 403):
        return EXIT_AUTH_FAILURE
    if status == 404:
        return EXIT_NOT_FOUND
    return EXIT_SERVER_ERROR
