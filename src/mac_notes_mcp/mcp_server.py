"""MCP server: exposes Apple Notes as MCP tools for LLM agents.

Thin wrappers over the ``notes`` service. Every tool returns a single text
block holding the JSON result. Served over stdio via the ``mcp`` Python SDK;
stdout carries the protocol, so logging goes to stderr.

Usage:
    # stdio (Claude Desktop, VS Code Copilot, etc.)
    mac-notes-mcp

    # Longer osascript timeout for large libraries
    MAC_NOTES_TIMEOUT=60 mac-notes-mcp
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

from mcp.server import Server
from mcp.types import TextContent, Tool
from pydantic import ValidationError

from . import __version__
from .config import (
    DEFAULT_LIST_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SORT_BY,
    DEFAULT_SORT_ORDER,
    PREVIEW_LENGTH,
    SERVER_NAME,
    SORT_FIELDS,
    SORT_ORDERS,
    log_level,
)
from .formatter import format_json
from .models import (
    CreateNoteArgs,
    DeleteNoteArgs,
    ListNotesOptions,
    MoveNoteArgs,
    ReadNoteArgs,
    SearchNotesArgs,
    UpdateNoteArgs,
)
from .notes import (
    NotesError,
    create_note,
    delete_note,
    get_note_for_summary,
    list_folders,
    list_notes_extended,
    move_note,
    read_note,
    search_notes,
    update_note,
)

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """Raised out of ``call_tool``; the SDK reports it as a tool error (``isError``)."""


# ---------------------------------------------------------------------------
# Server factory
# ---------------------------------------------------------------------------


def create_mcp_server(name: str = SERVER_NAME) -> Server:
    """Create and configure the MCP server with all Notes tools."""
    server = Server(name, version=__version__)
    _register_tools(server)
    _register_handlers(server)
    return server


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

_NOTE_ID = {"type": "string", "description": "The ID of the note (get IDs from list_notes)."}

TOOLS: list[Tool] = [
    Tool(
        name="list_notes",
        description=(
            "List notes from Apple Notes with sorting and filtering. "
            "PERFORMANCE TIP: pass folderId to restrict the scan to one folder, "
            "and leave includePreview off unless previews are needed."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "integer",
                    "description": f"Maximum number of notes to return (default: {DEFAULT_LIST_LIMIT}).",
                    "default": DEFAULT_LIST_LIMIT,
                    "minimum": 1,
                },
                "includePreview": {
                    "type": "boolean",
                    "description": f"Include the first {PREVIEW_LENGTH} chars of plaintext.",
                    "default": False,
                },
                "folderId": {
                    "type": "string",
                    "description": "Only list notes in this folder (get IDs from list_folders).",
                },
                "sortBy": {
                    "type": "string",
                    "enum": SORT_FIELDS,
                    "description": f"Field to sort by (default: {DEFAULT_SORT_BY}).",
                    "default": DEFAULT_SORT_BY,
                },
                "sortOrder": {
                    "type": "string",
                    "enum": SORT_ORDERS,
                    "description": f"Sort order (default: {DEFAULT_SORT_ORDER}).",
                    "default": DEFAULT_SORT_ORDER,
                },
                "filter": {
                    "type": "object",
                    "description": "Additional filters, combined with AND.",
                    "properties": {
                        "createdAfter": {
                            "type": "string",
                            "description": "Only notes created after this ISO date.",
                        },
                        "createdBefore": {
                            "type": "string",
                            "description": "Only notes created before this ISO date.",
                        },
                        "modifiedAfter": {
                            "type": "string",
                            "description": "Only notes modified after this ISO date.",
                        },
                        "modifiedBefore": {
                            "type": "string",
                            "description": "Only notes modified before this ISO date.",
                        },
                        "titleContains": {
                            "type": "string",
                            "description": "Only notes whose title contains this text (case-insensitive).",
                        },
                    },
                },
            },
            "required": [],
        },
    ),
    Tool(
        name="search_notes",
        description=(
            "Search notes by text, case-insensitive. Title matches come first, "
            "then notes whose body contains the query."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query text."},
                "limit": {
                    "type": "integer",
                    "description": f"Maximum number of results (default: {DEFAULT_SEARCH_LIMIT}).",
                    "default": DEFAULT_SEARCH_LIMIT,
                    "minimum": 1,
                },
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="read_note",
        description="Read the full content (HTML body and plaintext) of a note by ID or name.",
        inputSchema={
            "type": "object",
            "properties": {
                "nameOrId": {
                    "type": "string",
                    "description": "Note ID or exact note name. IDs are matched first.",
                },
            },
            "required": ["nameOrId"],
        },
    ),
    Tool(
        name="create_note",
        description="Create a new note in Apple Notes.",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Title of the new note."},
                "body": {"type": "string", "description": "Body content (plain text)."},
                "folderId": {
                    "type": "string",
                    "description": (
                        "Folder to create the note in. Defaults to the first folder "
                        "of the first account."
                    ),
                },
            },
            "required": ["title", "body"],
        },
    ),
    Tool(
        name="list_folders",
        description="List all folders in Apple Notes (excluding Recently Deleted).",
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    Tool(
        name="update_note",
        description=(
            "Update an existing note. At least one of title or body must be provided."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "noteId": _NOTE_ID,
                "title": {"type": "string", "description": "New title for the note."},
                "body": {
                    "type": "string",
                    "description": "New body content (plain text, max 100KB).",
                },
            },
            "required": ["noteId"],
        },
    ),
    Tool(
        name="move_note",
        description="Move a note to a different folder. Cannot move to Recently Deleted.",
        inputSchema={
            "type": "object",
            "properties": {
                "noteId": _NOTE_ID,
                "targetFolderId": {
                    "type": "string",
                    "description": "The ID of the target folder (get IDs from list_folders).",
                },
            },
            "required": ["noteId", "targetFolderId"],
        },
    ),
    Tool(
        name="get_note_for_summary",
        description=(
            "Get a note prepared for summarization: plaintext with word and "
            "character counts plus metadata."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "nameOrId": {"type": "string", "description": "Note ID or exact note name."},
            },
            "required": ["nameOrId"],
        },
    ),
    Tool(
        name="delete_note",
        description="Delete a note. Notes.app moves it to Recently Deleted.",
        inputSchema={
            "type": "object",
            "properties": {"noteId": _NOTE_ID},
            "required": ["noteId"],
        },
    ),
]


def _register_tools(server: Server) -> None:
    """Register tool listing handler."""

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return TOOLS


# ---------------------------------------------------------------------------
# Tool handlers
# ---------------------------------------------------------------------------


def _text_response(text: str) -> list[TextContent]:
    """Wrap a string as MCP TextContent."""
    return [TextContent(type="text", text=text)]


def _handle_list_notes(args: dict[str, Any]) -> list[TextContent]:
    options = ListNotesOptions.model_validate(args)
    return _text_response(format_json(list_notes_extended(options)))


def _handle_search_notes(args: dict[str, Any]) -> list[TextContent]:
    parsed = SearchNotesArgs.model_validate(args)
    return _text_response(format_json(search_notes(parsed.query, parsed.limit)))


def _handle_read_note(args: dict[str, Any]) -> list[TextContent]:
    parsed = ReadNoteArgs.model_validate(args)
    return _text_response(format_json(read_note(parsed.name_or_id)))


def _handle_create_note(args: dict[str, Any]) -> list[TextContent]:
    parsed = CreateNoteArgs.model_validate(args)
    result = create_note(parsed.title, parsed.body, folder_id=parsed.folder_id)
    return _text_response(format_json(result))


def _handle_list_folders(args: dict[str, Any]) -> list[TextContent]:
    return _text_response(format_json(list_folders()))


def _handle_update_note(args: dict[str, Any]) -> list[TextContent]:
    parsed = UpdateNoteArgs.model_validate(args)
    result = update_note(parsed.note_id, title=parsed.title, body=parsed.body)
    return _text_response(format_json(result))


def _handle_move_note(args: dict[str, Any]) -> list[TextContent]:
    parsed = MoveNoteArgs.model_validate(args)
    return _text_response(format_json(move_note(parsed.note_id, parsed.target_folder_id)))


def _handle_get_note_for_summary(args: dict[str, Any]) -> list[TextContent]:
    parsed = ReadNoteArgs.model_validate(args)
    return _text_response(format_json(get_note_for_summary(parsed.name_or_id)))


def _handle_delete_note(args: dict[str, Any]) -> list[TextContent]:
    parsed = DeleteNoteArgs.model_validate(args)
    return _text_response(format_json(delete_note(parsed.note_id)))


HANDLERS: dict[str, Callable[[dict[str, Any]], list[TextContent]]] = {
    "list_notes": _handle_list_notes,
    "search_notes": _handle_search_notes,
    "read_note": _handle_read_note,
    "create_note": _handle_create_note,
    "list_folders": _handle_list_folders,
    "update_note": _handle_update_note,
    "move_note": _handle_move_note,
    "get_note_for_summary": _handle_get_note_for_summary,
    "delete_note": _handle_delete_note,
}


def _format_validation_error(error: ValidationError) -> str:
    issues = []
    for issue in error.errors():
        path = ".".join(str(part) for part in issue["loc"])
        issues.append(f"{path}: {issue['msg']}" if path else issue["msg"])
    return f"Invalid parameters: {', '.join(issues)}"


def handle_call(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
    """Run one tool call; every failure surfaces as ``ToolError``."""
    handler = HANDLERS.get(name)
    if handler is None:
        raise ToolError(f"Unknown tool: {name}")

    try:
        return handler(arguments or {})
    except ValidationError as e:
        raise ToolError(_format_validation_error(e)) from e
    except (NotesError, ValueError) as e:
        logger.warning("Tool %s failed: %s", name, e)
        raise ToolError(f"Error in {name}: {e}") from e
    except Exception as e:
        logger.exception("Tool %s failed", name)
        raise ToolError(f"Error in {name}: {e}") from e


def _register_handlers(server: Server) -> None:
    """Register the tool call handler."""

    # Arguments are validated by the pydantic models in handle_call
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        return handle_call(name, arguments)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def configure_logging() -> None:
    """Send log records to stderr; stdout is reserved for MCP messages."""
    logging.basicConfig(
        level=log_level(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main_stdio() -> None:
    """Run the MCP server over stdio transport."""
    import asyncio

    from mcp.server.stdio import stdio_server

    configure_logging()
    server = create_mcp_server()

    async def run() -> None:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Apple Notes MCP server running on stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())

    logger.info("Starting %s v%s", SERVER_NAME, __version__)
    try:
        asyncio.run(run())
    except BrokenPipeError:
        # Client went away
        logger.info("Client disconnected")
    except BaseExceptionGroup as eg:
        # stdio_server runs its reader and writer in a task group
        _, rest = eg.split(BrokenPipeError)
        if rest is not None:
            raise rest
        logger.info("Client disconnected")
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main_stdio()
