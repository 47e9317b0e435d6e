"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- Topic-tagged debug log
- JSON, plain and rich rendering of payloads
- Global instance management and convenience functions
"""

from __future__ import annotations

import json

import pytest

from apiengine import output as output_module
from apiengine.output import (
    OutputFormat,
    OutputManager,
    _color_disabled_by_env,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("apiengine.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("apiengine.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_tty_but_no_color(self, tty):
        assert OutputManager(format=OutputFormat.AUTO, no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _color_disabled_by_env() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _color_disabled_by_env() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _color_disabled_by_env() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    @pytest.mark.parametrize("method", ["info", "success", "error"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("diagnostic text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "diagnostic text" in captured.err

    def test_error_prefix(self, capfd, non_tty):
        OutputManager(no_color=True).error("something broke")
        assert "Error: something broke" in capfd.readouterr().err

    def test_format_response_goes_to_stdout(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.info("HTTP 200 OK")
        mgr.format_response({"result": "ok"})
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"result": "ok"}
        assert "HTTP 200 OK" in captured.err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_error_and_data(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.error("broken")
        mgr.format_response("payload")
        captured = capfd.readouterr()
        assert "broken" in captured.err
        assert "payload" in captured.out

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(no_color=True).debug("should not appear")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        OutputManager(no_color=True, verbose=True).debug("something happened")
        assert "[debug] something happened" in capfd.readouterr().err

    def test_debug_topic_tags_line(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, verbose=True)
        mgr.debug("hit GET /users", topic="cache")
        mgr.debug("GET /users failed, next attempt in 1.0s", topic="retry")
        assert capfd.readouterr().err.splitlines() == [
            "[cache] hit GET /users",
            "[retry] GET /users failed, next attempt in 1.0s",
        ]

    def test_debug_topic_kept_literal_with_colour(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        OutputManager(verbose=True).debug("cleared", topic="cache")
        assert "[cache] cleared" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Payload rendering
# ------------------------------------------------------------------ #


class TestJsonFormat:
    def test_dict_as_json(self, capfd, non_tty):
        data = {"users": [{"id": 1, "name": "Leanne"}]}
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response(data)
        assert json.loads(capfd.readouterr().out) == data

    def test_string_that_is_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response('{"key": "value"}')
        assert json.loads(capfd.readouterr().out) == {"key": "value"}

    def test_plain_string(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response("pong")
        assert capfd.readouterr().out.strip() == "pong"

    def test_none_prints_nothing(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response(None)
        assert capfd.readouterr().out == ""


class TestPlainFormat:
    def test_dict_as_key_value(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(
            {"name": "Leanne", "id": 1}
        )
        assert capfd.readouterr().out.strip().split("\n") == ["name\tLeanne", "id\t1"]

    def test_list_of_dicts_as_rows(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(
            [{"id": 1, "title": "a"}, {"id": 2, "title": "b"}]
        )
        assert capfd.readouterr().out.strip().split("\n") == ["1\ta", "2\tb"]

    def test_list_of_primitives(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(["dev", "prod"])
        assert capfd.readouterr().out.strip().split("\n") == ["dev", "prod"]


class TestRichFormat:
    def test_dict_produces_output(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response({"key": "value"})
        out = capfd.readouterr().out
        assert "key" in out
        assert "value" in out

    def test_plain_string(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response("just text")
        assert "just text" in capfd.readouterr().out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_and_reset(self):
        mgr = OutputManager(quiet=True)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

    def test_convenience_functions_use_global(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.JSON, no_color=True, verbose=True))
        output_module.info("info msg")
        output_module.debug("debug msg", topic="retry")
        output_module.format_response([1, 2])
        captured = capfd.readouterr()
        assert "info msg" in captured.err
        assert "[retry] debug msg" in captured.err
        assert json.loads(captured.out) == [1, 2]
