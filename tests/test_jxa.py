"""Tests for the JXA adapter: script wrapping, output parsing, subprocess handling."""

from __future__ import annotations

import json
import os
import subprocess
from unittest.mock import patch

import pytest

from mac_notes_mcp.jxa import (
    JXAError,
    JXAScriptError,
    JXATimeoutError,
    build_script,
    parse_output,
    run_jxa,
)


def _completed(stdout: str = "", stderr: str = "", returncode: int = 0):
    return subprocess.CompletedProcess(
        args=["osascript"], returncode=returncode, stdout=stdout, stderr=stderr
    )


def _envelope(data) -> str:
    return json.dumps({"status": "success", "data": data}) + "\n"


class TestBuildScript:
    def test_embeds_args_as_json(self) -> None:
        script = build_script("return args[0];", ["hello", 3, None, True])
        assert 'const args = ["hello", 3, null, true];' in script

    def test_includes_body(self) -> None:
        script = build_script("return 42;")
        assert "return 42;" in script

    def test_does_not_define_run_handler(self) -> None:
        # osascript would call a top-level run() a second time
        script = build_script("return 1;")
        assert "function run(" not in script

    def test_quotes_and_backslashes_survive(self) -> None:
        tricky = "it's \"quoted\" \\ and </div>"
        script = build_script("return args[0];", [tricky])
        line = next(s for s in script.splitlines() if s.startswith("const args"))
        literal = line[len("const args = ") : -1]
        assert json.loads(literal) == [tricky]

    def test_line_separators_escaped(self) -> None:
        script = build_script("return args[0];", ["a\u2028b"])
        assert "\u2028" not in script
        assert "\\u2028" in script

    def test_prints_status_envelope(self) -> None:
        script = build_script("return 1;")
        assert 'status: "success"' in script
        assert 'status: "error"' in script
        assert "console.log" in script


class TestParseOutput:
    def test_success_on_stderr(self) -> None:
        assert parse_output("", _envelope([1, 2])) == [1, 2]

    def test_success_on_stdout(self) -> None:
        assert parse_output(_envelope({"a": 1}), "") == {"a": 1}

    def test_stderr_preferred_over_stdout(self) -> None:
        assert parse_output(_envelope("out"), _envelope("err")) == "err"

    def test_empty_output_returns_none(self) -> None:
        assert parse_output("", "  \n") is None

    def test_null_data(self) -> None:
        assert parse_output("", _envelope(None)) is None

    def test_script_error_raises(self) -> None:
        err = json.dumps({"status": "error", "message": "Note not found: x"})
        with pytest.raises(JXAScriptError, match="JXA Error: Note not found: x"):
            parse_output("", err)

    def test_envelope_after_noise(self) -> None:
        noisy = "some earlier log line\n" + _envelope(["ok"])
        assert parse_output("", noisy) == ["ok"]

    def test_garbage_raises(self) -> None:
        with pytest.raises(JXAError, match="Unparseable"):
            parse_output("", "execution error: Notes got an error (-1743)")

    def test_json_without_status_raises(self) -> None:
        with pytest.raises(JXAError, match="Unexpected"):
            parse_output("", json.dumps([1, 2, 3]))


class TestRunJxa:
    def test_pipes_script_through_stdin(self) -> None:
        with patch("mac_notes_mcp.jxa.subprocess.run", return_value=_completed(stderr=_envelope(7))) as run:
            assert run_jxa("return 7;", [1]) == 7
        cmd = run.call_args.args[0]
        assert cmd[1:] == ["-l", "JavaScript"]
        kwargs = run.call_args.kwargs
        assert "return 7;" in kwargs["input"]
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True

    def test_passes_timeout(self) -> None:
        with patch("mac_notes_mcp.jxa.subprocess.run", return_value=_completed(stderr=_envelope(1))) as run:
            run_jxa("return 1;", timeout=2.5)
        assert run.call_args.kwargs["timeout"] == 2.5

    def test_osascript_override(self) -> None:
        with patch.dict(os.environ, {"MAC_NOTES_OSASCRIPT": "/opt/bin/osascript"}):
            with patch(
                "mac_notes_mcp.jxa.subprocess.run", return_value=_completed(stderr=_envelope(1))
            ) as run:
                run_jxa("return 1;")
        assert run.call_args.args[0][0] == "/opt/bin/osascript"

    def test_timeout_raises(self) -> None:
        with patch(
            "mac_notes_mcp.jxa.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="osascript", timeout=1.5),
        ):
            with pytest.raises(JXATimeoutError, match="timeout after 1500ms"):
                run_jxa("return 1;", timeout=1.5)

    def test_missing_interpreter_raises(self) -> None:
        with patch("mac_notes_mcp.jxa.subprocess.run", side_effect=FileNotFoundError("osascript")):
            with pytest.raises(JXAError, match="Failed to execute JXA"):
                run_jxa("return 1;")

    def test_script_error_propagates(self) -> None:
        err = json.dumps({"status": "error", "message": "boom"})
        with patch("mac_notes_mcp.jxa.subprocess.run", return_value=_completed(stderr=err)):
            with pytest.raises(JXAScriptError, match="boom"):
                run_jxa("throw new Error('boom');")

    def test_nonzero_exit_with_garbage_reports_exit_code(self) -> None:
        with patch(
            "mac_notes_mcp.jxa.subprocess.run",
            return_value=_completed(stderr="syntax error: Expected expression", returncode=1),
        ):
            with pytest.raises(JXAError, match="exit code 1"):
                run_jxa("return ;;;")

    def test_empty_output_returns_none(self) -> None:
        with patch("mac_notes_mcp.jxa.subprocess.run", return_value=_completed()):
            assert run_jxa("return;") is None

    def test_timeout_error_is_jxa_error(self) -> None:
        assert issubclass(JXATimeoutError, JXAError)
        assert issubclass(JXAScriptError, JXAError)
