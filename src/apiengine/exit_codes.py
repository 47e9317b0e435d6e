"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to an error category and is referenced by the
corresponding :class:`~apiengine.exceptions.ApiEngineError` subclass (or,
for :class:`~apiengine.exceptions.ApiError`, derived from its ``status``).
Shell wrappers can inspect the exit code of the ``apiengine`` CLI to tell a
timeout from a 404 without parsing stderr.

Example::

    $ apiengine get /users/999
    $ echo $?
    4   # EXIT_NOT_FOUND -- the server answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or malformed input."""

EXIT_AUTH_FAILURE = 3
"""The server rejected the request as unauthorised (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The server answered with any other non-success status."""

EXIT_CONNECTION_ERROR = 6
"""The call never completed (timeout, DNS failure, connection refused)."""
