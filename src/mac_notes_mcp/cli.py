"""Apple Notes MCP — CLI entry point.

Installed as ``mac-notes`` command via pyproject.toml entry point. Mirrors
the MCP tools so they can be scripted or checked by hand.

Commands:
    mac-notes list                          List notes (sort/filter options)
    mac-notes search <query>                Search titles, then bodies
    mac-notes read <id-or-name>             Show a note in full
    mac-notes summary <id-or-name>          Plaintext with word/char counts
    mac-notes create "<title>" "<body>"     Create a note
    mac-notes update <id> --title/--body    Update a note
    mac-notes move <id> <folder-id>         Move a note to another folder
    mac-notes delete <id>                   Delete a note (to Recently Deleted)
    mac-notes folders                       List folders
    mac-notes doctor                        Run installation health checks
"""

from __future__ import annotations

import argparse
import platform
import shutil
import sys
import textwrap

from pydantic import ValidationError

from . import __version__
from .config import (
    DEFAULT_LIST_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SORT_BY,
    DEFAULT_SORT_ORDER,
    SORT_FIELDS,
    SORT_ORDERS,
    osascript_path,
)
from .formatter import (
    format_folders,
    format_json,
    format_note_detail,
    format_notes,
    format_summary,
)
from .models import ListNotesFilter, ListNotesOptions
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

# ---------------------------------------------------------------------------
# Doctor checks
# ---------------------------------------------------------------------------


def _check_cli() -> tuple[bool, str]:
    """Verify CLI entry point works."""
    return True, f"v{__version__}"


def _check_platform() -> tuple[bool, str]:
    """Notes.app scripting is only available on macOS."""
    system = platform.system()
    if system == "Darwin":
        return True, f"macOS {platform.mac_ver()[0] or '?'}"
    return False, f"{system} — Notes.app automation requires macOS"


def _check_osascript() -> tuple[bool, str]:
    """Verify the osascript interpreter is on PATH."""
    path = shutil.which(osascript_path())
    if path:
        return True, path
    return False, f"'{osascript_path()}' not found — set MAC_NOTES_OSASCRIPT"


def _check_mcp_importable() -> tuple[bool, str]:
    """Verify MCP SDK is installed."""
    try:
        import mcp  # noqa: F401
    except ImportError:
        return False, "Not installed — Run: pip install mcp"
    from importlib.metadata import PackageNotFoundError, version

    try:
        return True, f"v{version('mcp')}"
    except PackageNotFoundError:
        return True, "v?"


def _check_mcp_server() -> tuple[bool, str]:
    """Verify MCP server can be created."""
    try:
        from .mcp_server import create_mcp_server

        create_mcp_server()
        return True, "Server created successfully"
    except ImportError as e:
        return False, f"MCP SDK missing: {e}"
    except Exception as e:
        return False, f"Failed: {e}"


def _check_notes_access() -> tuple[bool, str]:
    """Round-trip a real script to Notes.app (needs Automation permission)."""
    try:
        folders = list_folders()
    except NotesError as e:
        return False, f"{e} — grant access in System Settings > Privacy & Security > Automation"
    return True, f"{len(folders)} folders visible"


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def cmd_doctor(args: argparse.Namespace) -> None:
    """Run installation health checks."""
    checks = [
        ("CLI entry point", _check_cli),
        ("Platform", _check_platform),
        ("osascript available", _check_osascript),
        ("MCP SDK installed", _check_mcp_importable),
        ("MCP server creatable", _check_mcp_server),
        ("Notes.app reachable", _check_notes_access),
    ]
    all_ok = True
    print("Apple Notes MCP — Health Check\n")
    for name, check_fn in checks:
        try:
            ok, detail = check_fn()
            status = "✓" if ok else "✗"
            print(f"  {status} {name}: {detail}")
            if not ok:
                all_ok = False
        except Exception as e:
            print(f"  ✗ {name}: CRASH — {e}")
            all_ok = False
    print()
    if all_ok:
        print("All checks passed.")
    else:
        print("Some checks failed. See details above.")
        sys.exit(1)


def cmd_list(args: argparse.Namespace) -> None:
    """List notes with sorting and filtering."""
    flt = ListNotesFilter(
        created_after=args.created_after,
        created_before=args.created_before,
        modified_after=args.modified_after,
        modified_before=args.modified_before,
        title_contains=args.title_contains,
    )
    options = ListNotesOptions(
        limit=args.limit,
        include_preview=args.preview,
        folder_id=args.folder,
        sort_by=args.sort_by,
        sort_order=args.order,
        filter=flt,
    )
    notes = list_notes_extended(options)
    print(format_json(notes) if args.json else format_notes(notes))


def cmd_search(args: argparse.Namespace) -> None:
    """Search notes by title and body."""
    notes = search_notes(" ".join(args.query), args.limit)
    print(format_json(notes) if args.json else format_notes(notes))


def cmd_read(args: argparse.Namespace) -> None:
    """Show a note in full."""
    note = read_note(args.name_or_id)
    print(format_json(note) if args.json else format_note_detail(note))


def cmd_summary(args: argparse.Namespace) -> None:
    """Show a note's plaintext with word and character counts."""
    note = get_note_for_summary(args.name_or_id)
    print(format_json(note) if args.json else format_summary(note))


def cmd_create(args: argparse.Namespace) -> None:
    """Create a new note."""
    body = args.body if args.body is not None else sys.stdin.read()
    result = create_note(args.title, body, folder_id=args.folder)
    print(format_json(result) if args.json else f"Created [{result.id}] {result.name}")


def cmd_update(args: argparse.Namespace) -> None:
    """Update a note's title and/or body."""
    result = update_note(args.id, title=args.title, body=args.body)
    print(format_json(result) if args.json else f"Updated [{result.id}] {result.name}")


def cmd_move(args: argparse.Namespace) -> None:
    """Move a note to another folder."""
    result = move_note(args.id, args.folder_id)
    if args.json:
        print(format_json(result))
    else:
        print(f"Moved [{result.id}] {result.name} → {result.new_folder_name}")


def cmd_delete(args: argparse.Namespace) -> None:
    """Delete a note."""
    result = delete_note(args.id)
    if args.json:
        print(format_json(result))
    else:
        print(f"Deleted [{result.id}] {result.name} (moved to Recently Deleted)")


def cmd_folders(args: argparse.Namespace) -> None:
    """List folders grouped by account."""
    folders = list_folders()
    print(format_json(folders) if args.json else format_folders(folders))


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="mac-notes",
        description="Apple Notes from the command line — the same operations the MCP server exposes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              mac-notes list --sort-by title --order asc   Alphabetical listing
              mac-notes list --modified-after 2024-01-01   Recently touched notes
              mac-notes search meeting                     Title, then body matches
              mac-notes read "Shopping List"               Read by name or ID
              mac-notes create "Ideas" "First idea"        Create a note
              mac-notes folders                            Folder IDs for --folder
              mac-notes list --json                        JSON output (any command)
        """),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")

    # Also accepted after the subcommand; SUPPRESS keeps a top-level --json from being reset
    output = argparse.ArgumentParser(add_help=False)
    output.add_argument(
        "--json", action="store_true", default=argparse.SUPPRESS, help="Print results as JSON"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # --- list ---
    p_list = sub.add_parser("list", parents=[output], help="List notes")
    p_list.add_argument(
        "--limit", "-l", type=int, default=DEFAULT_LIST_LIMIT,
        help=f"Max notes (default: {DEFAULT_LIST_LIMIT})",
    )
    p_list.add_argument("--preview", "-p", action="store_true", help="Include plaintext preview")
    p_list.add_argument("--folder", help="Only notes in this folder ID")
    p_list.add_argument("--sort-by", choices=SORT_FIELDS, default=DEFAULT_SORT_BY)
    p_list.add_argument("--order", choices=SORT_ORDERS, default=DEFAULT_SORT_ORDER)
    p_list.add_argument("--created-after", help="ISO date")
    p_list.add_argument("--created-before", help="ISO date")
    p_list.add_argument("--modified-after", help="ISO date")
    p_list.add_argument("--modified-before", help="ISO date")
    p_list.add_argument("--title-contains", help="Case-insensitive title substring")
    p_list.set_defaults(func=cmd_list)

    # --- search ---
    p_search = sub.add_parser("search", parents=[output], help="Search notes by title and body")
    p_search.add_argument("query", nargs="+", help="Search text")
    p_search.add_argument(
        "--limit", "-l", type=int, default=DEFAULT_SEARCH_LIMIT,
        help=f"Max results (default: {DEFAULT_SEARCH_LIMIT})",
    )
    p_search.set_defaults(func=cmd_search)

    # --- read ---
    p_read = sub.add_parser("read", parents=[output], help="Show a note in full")
    p_read.add_argument("name_or_id", help="Note ID or exact name")
    p_read.set_defaults(func=cmd_read)

    # --- summary ---
    p_summary = sub.add_parser(
        "summary", parents=[output], help="Note plaintext with word/char counts"
    )
    p_summary.add_argument("name_or_id", help="Note ID or exact name")
    p_summary.set_defaults(func=cmd_summary)

    # --- create ---
    p_create = sub.add_parser("create", parents=[output], help="Create a note")
    p_create.add_argument("title", help="Note title")
    p_create.add_argument("body", nargs="?", help="Note body (read from stdin if omitted)")
    p_create.add_argument("--folder", help="Folder ID (default: first folder)")
    p_create.set_defaults(func=cmd_create)

    # --- update ---
    p_update = sub.add_parser("update", parents=[output], help="Update a note's title and/or body")
    p_update.add_argument("id", help="Note ID")
    p_update.add_argument("--title", help="New title")
    p_update.add_argument("--body", help="New body (plain text, max 100KB)")
    p_update.set_defaults(func=cmd_update)

    # --- move ---
    p_move = sub.add_parser("move", parents=[output], help="Move a note to another folder")
    p_move.add_argument("id", help="Note ID")
    p_move.add_argument("folder_id", help="Target folder ID")
    p_move.set_defaults(func=cmd_move)

    # --- delete ---
    p_delete = sub.add_parser(
        "delete", parents=[output], help="Delete a note (moves it to Recently Deleted)"
    )
    p_delete.add_argument("id", help="Note ID")
    p_delete.set_defaults(func=cmd_delete)

    # --- folders ---
    p_folders = sub.add_parser("folders", parents=[output], help="List folders")
    p_folders.set_defaults(func=cmd_folders)

    # --- doctor ---
    p_doctor = sub.add_parser("doctor", help="Run installation health checks")
    p_doctor.set_defaults(func=cmd_doctor)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except (NotesError, ValueError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
