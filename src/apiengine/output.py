"""Terminal output for the CLI and the engine's diagnostic log.

Payloads go to stdout and nothing else does: status lines, profile
messages and errors go to stderr, so ``apiengine get /users --json | jq``
always sees clean data.

The same stderr stream carries the engine's debug log. Library code (the
engines and the cache) has no manager passed to it, so it logs through
the process-wide instance::

    get_output().debug("GET /users (TTL: 60s)", topic="cache")

Debug lines are only printed under ``--verbose`` and are tagged with their
topic, e.g. ``[cache] ...`` or ``[retry] ...``.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Iterator, Optional

from rich.console import Console
from rich.syntax import Syntax


class OutputFormat(str, Enum):
    """How payloads are rendered on stdout.

    ``AUTO`` picks ``RICH`` for a colour-capable terminal and ``PLAIN``
    otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# Rich style and plain-text prefix per diagnostic kind.
_DIAGNOSTIC_STYLES = {
    "info": ("", ""),
    "success": ("green", ""),
    "error": ("bold red", "Error: "),
    "debug": ("dim", ""),
}


class OutputManager:
    """Route payloads to stdout and diagnostics to stderr.

    Args:
        format: Payload format. ``AUTO`` is resolved once, here.
        no_color: Disable colour and Rich markup. ``NO_COLOR`` and
            ``TERM=dumb`` have the same effect.
        quiet: Drop info and success messages. Errors and payloads are
            always written.
        verbose: Print debug messages from the engines and the cache.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    def format_response(self, data: Any) -> None:
        """Write a response payload to stdout. ``None`` writes nothing."""
        if data is None:
            return
        if self._format == OutputFormat.RICH:
            self._render_rich(data)
            return
        render = _json_lines if self._format == OutputFormat.JSON else _plain_lines
        for line in render(data):
            print(line, file=sys.stdout, flush=True)

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic("info", message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic("success", message)

    def error(self, message: str) -> None:
        self._diagnostic("error", message)

    def debug(self, message: str, topic: str = "debug") -> None:
        """Log an engine event under ``--verbose``.

        Args:
            message: Event text.
            topic: Tag printed in brackets before the message, e.g.
                ``cache`` or ``retry``.
        """
        if self._verbose:
            self._diagnostic("debug", f"[{topic}] {message}")

    def _diagnostic(self, kind: str, message: str) -> None:
        style, prefix = _DIAGNOSTIC_STYLES[kind]
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
        elif style:
            # markup=False keeps the "[topic]" tag of debug lines literal
            self._stderr.print(f"{prefix}{message}", style=style, markup=False)
        else:
            self._stderr.print(message, markup=False)

    def _render_rich(self, data: Any) -> None:
        if isinstance(data, (dict, list)):
            text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data), markup=False)


def _json_lines(data: Any) -> Iterator[str]:
    # JSON text payloads are re-indented, other text passes through
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            yield data
            return
    yield json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> Iterator[str]:
    """Tab-separated lines: ``key<TAB>value`` for objects, one row per list item."""
    if isinstance(data, dict):
        for key, value in data.items():
            yield f"{key}\t{value}"
    elif isinstance(data, list):
        for item in data:
            yield "\t".join(map(str, item.values())) if isinstance(item, dict) else str(item)
    else:
        yield str(data)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _color_disabled_by_env() -> bool:
    """``NO_COLOR`` set to anything, or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the process-wide manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str, topic: str = "debug") -> None:
    get_output().debug(message, topic)
