"""Built-in CLI sub-commands for apiengine.

This package groups the Typer sub-command modules registered on the root
application in :mod:`apiengine.app`:

* :mod:`~apiengine.commands.profile` -- save, list, show, and delete
  stored API profiles.
* :mod:`~apiengine.commands.demo` -- walk through the service layer
  against JSONPlaceholder.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``profile``) or a plain callback function
registered directly on the root app (for single commands like ``demo``).
"""
