"""Response classification and formatting.

After the transport returns, :func:`to_api_response` parses the body with
:func:`extract_response_data` and either wraps it in an
:class:`~apiengine.models.ApiResponse` (2xx) or raises an
:class:`~apiengine.exceptions.ApiError` carrying the parsed error body.

:func:`format_api_response` bridges a successful result to the output
layer for the CLI.

See Also:
    :mod:`apiengine.output` -- the output manager that renders data.
"""

from __future__ import annotations

from typing import Any

import httpx

from apiengine.exceptions import ApiError
from apiengine.models import ApiResponse
from apiengine.output import get_output


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns
    ``None`` for responses with no content, such as a ``204`` answer to
    a DELETE.

    Args:
        response: The :class:`httpx.Response` to extract data from.

    Returns:
        A JSON-decoded object (``dict``, ``list``, etc.), a ``str`` of raw
        text, or ``None`` if the body is empty.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        pass

    return response.text


def to_api_response(response: httpx.Response) -> ApiResponse[Any]:
    """Classify a transport response.

    Args:
        response: The response returned by the transport.

    Returns:
        An :class:`~apiengine.models.ApiResponse` for a 2xx status.

    Raises:
        ApiError: For any status outside the 2xx range. ``status`` is the
            HTTP status and ``response`` the parsed error body.
    """
    data = extract_response_data(response)
    status = response.status_code

    if not response.is_success:
        raise ApiError(f"HTTP {status}: {response.reason_phrase}", status, data)

    return ApiResponse(
        data=data,
        status=status,
        status_text=response.reason_phrase,
        headers=dict(response.headers),
    )


def format_api_response(result: ApiResponse[Any]) -> None:
    """Print a successful result using the global output system.

    Writes the status line (e.g. ``HTTP 200 OK``) to stderr and renders
    the payload to stdout.

    Args:
        result: The structured result returned by an engine's ``request``.
    """
    output = get_output()
    output.info(f"HTTP {result.status} {result.status_text}".rstrip())
    output.format_response(result.data)
