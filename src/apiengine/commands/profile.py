"""Profile commands -- create, inspect, and remove stored API profiles.

Provides the ``apiengine profile`` sub-command group. Each profile is a
:class:`~apiengine.models.Profile` persisted as JSON in the apiengine
config directory and selected at call time with ``--profile`` or
``APIENGINE_PROFILE``.
"""

from __future__ import annotations

from typing import Optional

import typer

from apiengine.exceptions import ApiEngineError
from apiengine.output import error, format_response, info, success

profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("save")
def profile_save(
    name: str = typer.Argument(help="Profile name."),
    base_url: str = typer.Option(..., "--base-url", "-u", help="Root address of the API."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Default header as 'Name: value'. Repeatable."
    ),
    timeout: float = typer.Option(30.0, "--timeout", help="Default timeout in seconds."),
    retries: int = typer.Option(0, "--retries", min=0, help="Default retries on transport failure."),
    retry_delay: float = typer.Option(1.0, "--retry-delay", min=0, help="Initial backoff in seconds."),
) -> None:
    """Create or overwrite a profile.

    Example::

        apiengine profile save placeholder --base-url https://jsonplaceholder.typicode.com --retries 2
    """
    from apiengine.app import parse_headers
    from apiengine.config import ProfileStore
    from apiengine.models import Profile, RequestSettings

    try:
        profile = Profile(
            name=name,
            base_url=base_url,
            headers=parse_headers(header or []),
            request=RequestSettings(timeout=timeout, retries=retries, retry_delay=retry_delay),
        )
        path = ProfileStore().save(profile)
    except ApiEngineError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    success(f"Saved profile '{name}' to {path}")


@profile_app.command("list")
def profile_list() -> None:
    """List stored profile names."""
    from apiengine.config import ProfileStore

    store = ProfileStore()
    names = store.names()
    if not names:
        info(f"No profiles in {store.root}")
        return
    format_response(names)


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Print a stored profile."""
    from apiengine.config import ProfileStore

    try:
        profile = ProfileStore().load(name)
    except ApiEngineError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    format_response(profile.model_dump(mode="json"))


@profile_app.command("delete")
def profile_delete(name: str = typer.Argument(help="Profile name.")) -> None:
    """Delete a stored profile."""
    from apiengine.config import ProfileStore

    try:
        ProfileStore().delete(name)
    except ApiEngineError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    success(f"Deleted profile '{name}'")
