"""Typer application and CLI entry point for apiengine.

This module wires together the top-level Typer application: global options
(profile, base URL, output format, verbosity), one command per HTTP verb
backed by :class:`~apiengine.client.SyncEngine`, the ``profile`` command
group, and the ``demo`` walkthrough.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.

See Also:
    :mod:`apiengine.config`: Profile resolution.
    :mod:`apiengine.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import json
import signal
import sys
from typing import Any, Optional

import typer
from pydantic import ValidationError

from apiengine import __version__
from apiengine.exceptions import ApiEngineError, InvalidUsageError
from apiengine.exit_codes import EXIT_GENERIC_FAILURE
from apiengine.models import HTTPMethod, Profile, RequestConfig

app = typer.Typer(
    name="apiengine",
    help="Call HTTP APIs with timeouts, retry with backoff, and response caching.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from apiengine.commands.demo import demo_command  # noqa: E402
from apiengine.commands.profile import profile_app  # noqa: E402

app.add_typer(profile_app, name="profile", help="Manage stored API profiles.")
app.command("demo")(demo_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"apiengine {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-u", help="Root address; overrides the profile's."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show retries and cache activity."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~apiengine.output.OutputManager` from the
    CLI flags and stores the profile selection in ``ctx.obj``.
    """
    from apiengine.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["base_url"] = base_url


# ------------------------------------------------------------------ #
# Verb commands
# ------------------------------------------------------------------ #

_HEADER_HELP = "Extra header as 'Name: value'. Repeatable."


@app.command("get")
def get_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Endpoint path, e.g. /users/1."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=_HEADER_HELP),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Timeout in seconds."),
    retries: Optional[int] = typer.Option(None, "--retries", min=0, help="Retries on transport failure."),
    retry_delay: Optional[float] = typer.Option(None, "--retry-delay", min=0, help="Initial backoff in seconds."),
) -> None:
    """Send a GET request and print the response body."""
    _execute(ctx, HTTPMethod.GET, path, None, header, timeout, retries, retry_delay)


@app.command("post")
def post_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Endpoint path."),
    body: str = typer.Option(..., "--body", "-d", help="JSON request body."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=_HEADER_HELP),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Timeout in seconds."),
    retries: Optional[int] = typer.Option(None, "--retries", min=0, help="Retries on transport failure."),
    retry_delay: Optional[float] = typer.Option(None, "--retry-delay", min=0, help="Initial backoff in seconds."),
) -> None:
    """Send a POST request with a JSON body."""
    _execute(ctx, HTTPMethod.POST, path, body, header, timeout, retries, retry_delay)


@app.command("put")
def put_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Endpoint path."),
    body: str = typer.Option(..., "--body", "-d", help="JSON request body."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=_HEADER_HELP),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Timeout in seconds."),
    retries: Optional[int] = typer.Option(None, "--retries", min=0, help="Retries on transport failure."),
    retry_delay: Optional[float] = typer.Option(None, "--retry-delay", min=0, help="Initial backoff in seconds."),
) -> None:
    """Send a PUT request with a JSON body."""
    _execute(ctx, HTTPMethod.PUT, path, body, header, timeout, retries, retry_delay)


@app.command("patch")
def patch_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Endpoint path."),
    body: str = typer.Option(..., "--body", "-d", help="JSON object with the fields to change."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=_HEADER_HELP),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Timeout in seconds."),
    retries: Optional[int] = typer.Option(None, "--retries", min=0, help="Retries on transport failure."),
    retry_delay: Optional[float] = typer.Option(None, "--retry-delay", min=0, help="Initial backoff in seconds."),
) -> None:
    """Send a PATCH request with a partial JSON body."""
    _execute(ctx, HTTPMethod.PATCH, path, body, header, timeout, retries, retry_delay)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Endpoint path."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=_HEADER_HELP),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Timeout in seconds."),
    retries: Optional[int] = typer.Option(None, "--retries", min=0, help="Retries on transport failure."),
    retry_delay: Optional[float] = typer.Option(None, "--retry-delay", min=0, help="Initial backoff in seconds."),
) -> None:
    """Send a DELETE request."""
    _execute(ctx, HTTPMethod.DELETE, path, None, header, timeout, retries, retry_delay)


def _execute(
    ctx: typer.Context,
    method: HTTPMethod,
    path: str,
    body: Optional[str],
    header: Optional[list[str]],
    timeout: Optional[float],
    retries: Optional[int],
    retry_delay: Optional[float],
) -> None:
    """Run one verb command through a :class:`~apiengine.client.SyncEngine`.

    :class:`~apiengine.exceptions.ApiEngineError` is reported on stderr and
    turned into the matching exit code.
    """
    from apiengine.client import SyncEngine
    from apiengine.client.response import format_api_response
    from apiengine.output import error

    try:
        profile = _require_profile(ctx)
        settings = profile.request
        config = _build_config(
            method,
            parse_headers(header or []),
            _parse_body(body),
            timeout,
            settings.retries if retries is None else retries,
            settings.retry_delay if retry_delay is None else retry_delay,
        )
        with SyncEngine.from_profile(profile) as engine:
            result = engine.request(path, config)
        format_api_response(result)
    except ApiEngineError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)


def _require_profile(ctx: typer.Context) -> Profile:
    from apiengine.config import resolve_profile

    obj = ctx.obj or {}
    profile = resolve_profile(obj.get("profile"), obj.get("base_url"))
    if profile is None:
        raise InvalidUsageError(
            "No API selected: pass --base-url, --profile, or set APIENGINE_BASE_URL"
        )
    return profile


def _build_config(
    method: HTTPMethod,
    headers: dict[str, str],
    body: Any,
    timeout: Optional[float],
    retries: int,
    retry_delay: float,
) -> RequestConfig:
    try:
        return RequestConfig(
            method=method,
            headers=headers,
            body=body,
            timeout=timeout,
            retries=retries,
            retry_delay=retry_delay,
        )
    except ValidationError as exc:
        raise InvalidUsageError(f"Invalid request options: {exc}") from exc


def parse_headers(values: list[str]) -> dict[str, str]:
    """Parse ``Name: value`` strings into a header mapping.

    Raises:
        InvalidUsageError: If an entry has no ``:`` separator or an empty name.
    """
    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header '{raw}': expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers


def _parse_body(body: Optional[str]) -> Any:  # noqa: ANN401
    """Parse *body* as JSON."""
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"--body is not valid JSON: {exc}") from exc


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``apiengine`` console script.

    Unhandled :class:`~apiengine.exceptions.ApiEngineError` instances cause
    a clean exit with the error's ``exit_code``; anything else exits with
    :data:`~apiengine.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from apiengine.output import error

        if isinstance(exc, ApiEngineError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
