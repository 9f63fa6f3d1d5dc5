"""Run JavaScript for Automation (JXA) scripts through ``osascript``.

The script body is wrapped in a function, its arguments are embedded as a
JSON literal, and the wrapper prints a JSON envelope::

    {"status": "success", "data": ...}
    {"status": "error", "message": "..."}

The wrapper is piped to ``osascript -l JavaScript`` on stdin, so neither the
script nor its arguments ever pass through a shell.

Usage:
    from mac_notes_mcp.jxa import run_jxa
    names = run_jxa('return Application("Notes").notes.name();')
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Sequence
from typing import Any

from .config import DEFAULT_TIMEOUT, osascript_path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class JXAError(RuntimeError):
    """osascript could not be run or produced unusable output."""


class JXATimeoutError(JXAError):
    """The script did not finish within its timeout."""


class JXAScriptError(JXAError):
    """The script ran and threw a JavaScript error."""


# ---------------------------------------------------------------------------
# Script wrapping
# ---------------------------------------------------------------------------

# osascript calls a top-level ``run`` handler on its own, so the task function
# must not be named ``run`` or it would execute twice.
_WRAPPER = """\
const args = {args};

function notesTask() {{
{body}
}}

try {{
  const result = notesTask();
  console.log(JSON.stringify({{ status: "success", data: result === undefined ? null : result }}));
}} catch (e) {{
  console.log(JSON.stringify({{ status: "error", message: (e && e.message) || String(e) }}));
}}
"""


def build_script(script_body: str, args: Sequence[Any] = ()) -> str:
    """Return the complete JXA program for *script_body* and *args*."""
    # ensure_ascii escapes U+2028/U+2029, which are not valid in older JS literals
    serialized = json.dumps(list(args), ensure_ascii=True)
    return _WRAPPER.format(args=serialized, body=script_body)


def parse_output(stdout: str, stderr: str) -> Any:
    """Decode the JSON envelope printed by the wrapper.

    ``console.log`` writes to stderr under osascript, so stderr is checked
    first and stdout is the fallback. Returns ``None`` when both are empty.
    """
    text = stderr.strip() or stdout.strip()
    if not text:
        return None

    try:
        envelope = json.loads(text)
    except json.JSONDecodeError:
        # Anything logged before the envelope ends up on earlier lines
        last_line = text.splitlines()[-1]
        try:
            envelope = json.loads(last_line)
        except json.JSONDecodeError:
            raise JXAError(f"Unparseable osascript output: {text[:500]}") from None

    if not isinstance(envelope, dict) or "status" not in envelope:
        raise JXAError(f"Unexpected osascript output: {text[:500]}")

    if envelope["status"] == "error":
        raise JXAScriptError(f"JXA Error: {envelope.get('message', 'unknown error')}")

    return envelope.get("data")


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def run_jxa(
    script_body: str,
    args: Sequence[Any] = (),
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """Execute a JXA script body and return its (JSON-decoded) result.

    Raises ``JXATimeoutError`` when the script exceeds *timeout* seconds,
    ``JXAScriptError`` when the script throws, and ``JXAError`` for every
    other failure.
    """
    program = build_script(script_body, args)
    cmd = [osascript_path(), "-l", "JavaScript"]
    logger.debug("Running JXA script (%d args, timeout %.1fs)", len(args), timeout)

    try:
        result = subprocess.run(
            cmd,
            input=program,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning("JXA script timed out after %.1fs", timeout)
        raise JXATimeoutError(
            f"JXA execution timeout after {int(timeout * 1000)}ms"
        ) from None
    except OSError as e:
        raise JXAError(f"Failed to execute JXA: {e}") from e

    try:
        return parse_output(result.stdout or "", result.stderr or "")
    except JXAScriptError:
        raise
    except JXAError as e:
        logger.warning("osascript exited with %s: %s", result.returncode, e)
        if result.returncode:
            raise JXAError(f"{e} (exit code {result.returncode})") from None
        raise
