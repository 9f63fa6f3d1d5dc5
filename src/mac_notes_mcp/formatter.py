"""Output formatting: JSON for tool responses, text for the CLI."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from .models import Folder, NoteDetail, NoteForSummary, NoteMetadata, dump


def format_json(data: BaseModel | list[BaseModel] | Any) -> str:
    """Pretty JSON with camelCase keys; unset optional fields are dropped."""
    if isinstance(data, BaseModel) or (
        isinstance(data, list) and all(isinstance(item, BaseModel) for item in data)
    ):
        data = dump(data)
    return json.dumps(data, indent=2, ensure_ascii=False)


def _short_date(iso: str) -> str:
    # 2024-01-15T10:00:00.000Z -> 2024-01-15 10:00
    return iso[:16].replace("T", " ")


def format_note_line(note: NoteMetadata) -> str:
    """Single line per note.

    Format: [ID] Name (Folder) modified 2024-01-15 10:00
    """
    folder = f" ({note.folder_name})" if note.folder_name else ""
    line = f"[{note.id}] {note.name}{folder} modified {_short_date(note.modification_date)}"
    if note.preview:
        line += f"\n  > {note.preview.strip()}"
    return line


def format_notes(notes: list[NoteMetadata]) -> str:
    if not notes:
        return "No notes found."
    lines = [format_note_line(n) for n in notes]
    lines.append(f"\n{len(notes)} note(s)")
    return "\n".join(lines)


def format_note_detail(note: NoteDetail) -> str:
    """Full note: metadata header followed by the plaintext body."""
    lines = [
        f"# {note.name}",
        f"id: {note.id}",
        f"created: {note.creation_date}",
        f"modified: {note.modification_date}",
    ]
    if note.folder_name:
        lines.append(f"folder: {note.folder_name}")
    lines.append(f"\n{note.plaintext.strip()}")
    return "\n".join(lines)


def format_summary(note: NoteForSummary) -> str:
    lines = [
        f"# {note.name}",
        f"id: {note.id}",
        f"folder: {note.folder_name or '?'}",
        f"created: {note.creation_date}",
        f"modified: {note.modification_date}",
        f"words: {note.word_count}  characters: {note.character_count}",
        f"\n{note.plaintext.strip()}",
    ]
    return "\n".join(lines)


def format_folders(folders: list[Folder]) -> str:
    """Folders grouped by account, with note counts."""
    if not folders:
        return "No folders found."

    by_account: dict[str, list[Folder]] = {}
    for folder in folders:
        by_account.setdefault(folder.account_name, []).append(folder)

    lines: list[str] = []
    for account in sorted(by_account):
        lines.append(f"{account}:")
        for folder in by_account[account]:
            lines.append(f"  [{folder.id}] {folder.name}  ({folder.note_count})")
    return "\n".join(lines)
