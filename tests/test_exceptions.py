"""Tests for the exception hierarchy and exit-code mapping."""

from __future__ import annotations

import pytest

from apiengine.exceptions import (
    ApiEngineError,
    ApiError,
    ConfigError,
    InvalidUsageError,
)
from apiengine.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class TestApiError:
    def test_fields(self) -> None:
        err = ApiError("HTTP 404: Not Found", 404, {"error": "missing"})
        assert str(err) == "HTTP 404: Not Found"
        assert err.message == "HTTP 404: Not Found"
        assert err.status == 404
        assert err.response == {"error": "missing"}
        assert isinstance(err, ApiEngineError)

    def test_response_defaults_to_none(self) -> None:
        assert ApiError("Request timeout", 408).response is None

    @pytest.mark.parametrize(
        ("status", "timeout", "transport", "server"),
        [
            (0, False, True, False),
            (408, True, False, False),
            (404, False, False, True),
            (500, False, False, True),
        ],
    )
    def test_classification(self, status: int, timeout: bool, transport: bool, server: bool) -> None:
        err = ApiError("x", status)
        assert err.is_timeout is timeout
        assert err.is_transport_error is transport
        assert err.is_server_error is server

    @pytest.mark.parametrize(
        ("status", "exit_code"),
        [
            (0, EXIT_CONNECTION_ERROR),
            (408, EXIT_CONNECTION_ERROR),
            (401, EXIT_AUTH_FAILURE),
            (403, EXIT_AUTH_FAILURE),
            (404, EXIT_NOT_FOUND),
            (422, EXIT_SERVER_ERROR),
            (500, EXIT_SERVER_ERROR),
        ],
    )
    def test_exit_code_from_status(self, status: int, exit_code: int) -> None:
        assert ApiError("x", status).exit_code == exit_code

    def test_repr(self) -> None:
        assert repr(ApiError("Request timeout", 408)) == "ApiError(status=408, message='Request timeout')"


class TestOtherErrors:
    def test_config_error_exit_code(self) -> None:
        assert ConfigError("bad profile").exit_code == EXIT_GENERIC_FAILURE

    def test_invalid_usage_exit_code(self) -> None:
        assert InvalidUsageError("bad flag").exit_code == EXIT_INVALID_USAGE

    def test_exit_code_override(self) -> None:
        assert ApiEngineError("x", exit_code=42).exit_code == 42
