"""Constants and configuration for the Apple Notes MCP server."""

from __future__ import annotations

import logging
import os

# ---------------------------------------------------------------------------
# Server identity
# ---------------------------------------------------------------------------

SERVER_NAME = "mac-notes-mcp"

# ---------------------------------------------------------------------------
# Notes.app conventions
# ---------------------------------------------------------------------------

# Trash folder; hidden from listings and never a valid move target
RECENTLY_DELETED = "Recently Deleted"

PREVIEW_LENGTH = 200

MAX_BODY_BYTES = 100 * 1024

# ---------------------------------------------------------------------------
# osascript execution
# ---------------------------------------------------------------------------

DEFAULT_OSASCRIPT = "osascript"

# Seconds
DEFAULT_TIMEOUT = 10.0
LIST_TIMEOUT = 15.0
SEARCH_TIMEOUT = 20.0

# ---------------------------------------------------------------------------
# Tool defaults
# ---------------------------------------------------------------------------

DEFAULT_LIST_LIMIT = 100
DEFAULT_SEARCH_LIMIT = 50

SORT_FIELDS: list[str] = ["modificationDate", "creationDate", "title", "folder"]
SORT_ORDERS: list[str] = ["asc", "desc"]

DEFAULT_SORT_BY = "modificationDate"
DEFAULT_SORT_ORDER = "desc"

# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------

ENV_OSASCRIPT = "MAC_NOTES_OSASCRIPT"
ENV_TIMEOUT = "MAC_NOTES_TIMEOUT"
ENV_LOG_LEVEL = "MAC_NOTES_LOG_LEVEL"


def osascript_path() -> str:
    """Return the osascript executable, honouring ``MAC_NOTES_OSASCRIPT``."""
    return os.environ.get(ENV_OSASCRIPT) or DEFAULT_OSASCRIPT


def resolve_timeout(default: float) -> float:
    """Return the timeout for an operation.

    ``MAC_NOTES_TIMEOUT`` (seconds) overrides every per-operation default.
    Invalid or non-positive values are ignored.
    """
    raw = os.environ.get(ENV_TIMEOUT)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def log_level() -> int:
    """Logging level from ``MAC_NOTES_LOG_LEVEL`` (default INFO)."""
    name = os.environ.get(ENV_LOG_LEVEL, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
