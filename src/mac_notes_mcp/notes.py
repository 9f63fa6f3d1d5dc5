"""Notes service: list, search, read, create, update, move and delete notes.

Each operation runs one JXA script against Notes.app (see ``jxa.py``) and
validates what comes back with the models in ``models.py``. Filtering and
sorting for ``list_notes_extended`` happen here in Python, over data the
script has already materialized.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from .config import (
    DEFAULT_TIMEOUT,
    LIST_TIMEOUT,
    MAX_BODY_BYTES,
    PREVIEW_LENGTH,
    RECENTLY_DELETED,
    SEARCH_TIMEOUT,
    resolve_timeout,
)
from .jxa import JXAError, JXAScriptError, run_jxa
from .models import (
    CreateNoteResult,
    DeleteNoteResult,
    Folder,
    ListNotesFilter,
    ListNotesOptions,
    MoveNoteResult,
    NoteDetail,
    NoteForSummary,
    NoteMetadata,
    UpdateNoteResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class NotesError(Exception):
    """A Notes operation failed."""


class NoteNotFoundError(NotesError):
    """No note matched the given ID or name."""


class FolderNotFoundError(NotesError):
    """No folder matched the given ID."""


# ---------------------------------------------------------------------------
# Shared JXA helpers
# ---------------------------------------------------------------------------

_JS_ISO_DATE = """
  function isoDate(value) {
    if (!value) return new Date().toISOString();
    try {
      return value.toISOString();
    } catch (e) {
      return new Date().toISOString();
    }
  }
"""

_JS_FIND_NOTE = """
  function findNote(notesApp, key) {
    const allNotes = notesApp.notes();
    for (let i = 0; i < allNotes.length; i++) {
      if (allNotes[i].id() === key) return allNotes[i];
    }
    for (let i = 0; i < allNotes.length; i++) {
      if (allNotes[i].name() === key) return allNotes[i];
    }
    throw new Error("Note not found: " + key);
  }

  function findNoteById(notesApp, noteId) {
    const allNotes = notesApp.notes();
    for (let i = 0; i < allNotes.length; i++) {
      if (allNotes[i].id() === noteId) return allNotes[i];
    }
    throw new Error("Note not found: " + noteId);
  }
"""

_JS_FIND_FOLDER = """
  function findFolderById(notesApp, folderId) {
    const accounts = notesApp.accounts();
    for (let a = 0; a < accounts.length; a++) {
      const folders = accounts[a].folders();
      for (let f = 0; f < folders.length; f++) {
        if (folders[f].id() === folderId) return folders[f];
      }
    }
    throw new Error("Folder not found: " + folderId);
  }
"""

_JS_FOLDER_OF = """
  function folderOf(note) {
    try {
      const folder = note.container();
      return { id: folder.id(), name: folder.name() };
    } catch (e) {
      return { id: "", name: "" };
    }
  }
"""

# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------

# args: [limit (0 = all), includePreview, folderId, previewLength, trashName]
LIST_NOTES_SCRIPT = (
    _JS_ISO_DATE
    + """
  const notesApp = Application("Notes");
  const limitCount = args[0];
  const includePreview = args[1];
  const targetFolderId = args[2];
  const previewLength = args[3];
  const trashName = args[4];

  const allNotesData = [];
  const accounts = notesApp.accounts();

  for (let a = 0; a < accounts.length; a++) {
    const folders = accounts[a].folders();

    for (let f = 0; f < folders.length; f++) {
      const folder = folders[f];
      const folderName = folder.name();
      const folderId = folder.id();

      if (folderName === trashName) continue;
      if (targetFolderId && folderId !== targetFolderId) continue;

      const noteContainer = folder.notes;
      if (noteContainer.length === 0) continue;

      // One Apple Event per property rather than one per note
      const ids = noteContainer.id();
      const names = noteContainer.name();
      const modDates = noteContainer.modificationDate();
      const creationDates = noteContainer.creationDate();

      let previews = [];
      if (includePreview) {
        try {
          previews = noteContainer.plaintext();
        } catch (e) {
          previews = ids.map(() => "");
        }
      }

      for (let i = 0; i < ids.length; i++) {
        const entry = {
          id: ids[i],
          name: names[i],
          modificationDate: isoDate(modDates[i]),
          creationDate: isoDate(creationDates[i]),
          folderName: folderName,
          folderId: folderId,
          sortKey: modDates[i] ? modDates[i].getTime() : 0,
        };
        if (includePreview) {
          entry.preview = previews[i] ? previews[i].substring(0, previewLength) : "";
        }
        allNotesData.push(entry);
      }
    }
  }

  allNotesData.sort((x, y) => y.sortKey - x.sortKey);
  const result = limitCount > 0 ? allNotesData.slice(0, limitCount) : allNotesData;
  result.forEach((n) => delete n.sortKey);
  return result;
"""
)

# args: [query, limit]
SEARCH_NOTES_SCRIPT = """
  const notesApp = Application("Notes");
  const allNotes = notesApp.notes();
  const searchQuery = args[0].toLowerCase();
  const searchLimit = args[1];

  const matchingNotes = [];
  const matchedIds = {};

  function describe(note, noteId) {
    return {
      id: noteId,
      name: note.name(),
      modificationDate: note.modificationDate().toISOString(),
      creationDate: note.creationDate().toISOString(),
    };
  }

  // Titles first
  for (let i = 0; i < allNotes.length && matchingNotes.length < searchLimit; i++) {
    const note = allNotes[i];
    if (note.name().toLowerCase().includes(searchQuery)) {
      const noteId = note.id();
      matchedIds[noteId] = true;
      matchingNotes.push(describe(note, noteId));
    }
  }

  // Then bodies, for notes not already matched
  for (let i = 0; i < allNotes.length && matchingNotes.length < searchLimit; i++) {
    const note = allNotes[i];
    const noteId = note.id();
    if (matchedIds[noteId]) continue;
    try {
      if (note.plaintext().toLowerCase().includes(searchQuery)) {
        matchedIds[noteId] = true;
        matchingNotes.push(describe(note, noteId));
      }
    } catch (e) {
      continue;
    }
  }

  matchingNotes.sort((x, y) => new Date(y.modificationDate) - new Date(x.modificationDate));
  return matchingNotes;
"""

# args: [nameOrId]
READ_NOTE_SCRIPT = (
    _JS_FIND_NOTE
    + _JS_FOLDER_OF
    + """
  const notesApp = Application("Notes");
  const note = findNote(notesApp, args[0]);
  const folder = folderOf(note);

  return {
    id: note.id(),
    name: note.name(),
    body: note.body(),
    plaintext: note.plaintext(),
    modificationDate: note.modificationDate().toISOString(),
    creationDate: note.creationDate().toISOString(),
    folderName: folder.name,
    folderId: folder.id,
  };
"""
)

# args: [nameOrId]
SUMMARY_NOTE_SCRIPT = (
    _JS_FIND_NOTE
    + _JS_FOLDER_OF
    + """
  const notesApp = Application("Notes");
  const note = findNote(notesApp, args[0]);

  return {
    id: note.id(),
    name: note.name(),
    plaintext: note.plaintext(),
    creationDate: note.creationDate().toISOString(),
    modificationDate: note.modificationDate().toISOString(),
    folderName: folderOf(note).name,
  };
"""
)

# args: [title, htmlContent, folderId, trashName]
CREATE_NOTE_SCRIPT = (
    _JS_FIND_FOLDER
    + """
  const notesApp = Application("Notes");
  const noteTitle = args[0];
  const htmlContent = args[1];
  const folderId = args[2];
  const trashName = args[3];

  let targetFolder = null;
  if (folderId) {
    targetFolder = findFolderById(notesApp, folderId);
    if (targetFolder.name() === trashName) {
      throw new Error("Cannot create a note in Recently Deleted folder");
    }
  } else {
    const accounts = notesApp.accounts();
    if (accounts.length === 0) {
      throw new Error("No Notes account found");
    }
    const folders = accounts[0].folders();
    if (folders.length === 0) {
      throw new Error("No folders found in the default account");
    }
    targetFolder = folders[0];
  }

  // A single make command; pushing onto folder.notes can create duplicates
  const newNote = notesApp.make({
    new: "note",
    at: targetFolder,
    withProperties: { name: noteTitle, body: htmlContent },
  });

  return { id: newNote.id(), name: newNote.name() };
"""
)

# args: [trashName]
LIST_FOLDERS_SCRIPT = """
  const notesApp = Application("Notes");
  const trashName = args[0];
  const accounts = notesApp.accounts();
  const result = [];

  for (let i = 0; i < accounts.length; i++) {
    const account = accounts[i];
    const accountName = account.name();
    const folders = account.folders();

    for (let j = 0; j < folders.length; j++) {
      const folder = folders[j];
      const folderName = folder.name();
      if (folderName === trashName) continue;

      result.push({
        id: folder.id(),
        name: folderName,
        accountName: accountName,
        noteCount: folder.notes.length,
      });
    }
  }

  return result;
"""

# args: [noteId, title or null, escaped body or null, escaped title or null]
UPDATE_NOTE_SCRIPT = (
    _JS_FIND_NOTE
    + """
  function escapeHtml(text) {
    return text
      .replace(/&/g, "&amp;")
      .replace(/</g, "&lt;")
      .replace(/>/g, "&gt;")
      .replace(/"/g, "&quot;")
      .replace(/'/g, "&#x27;");
  }

  const notesApp = Application("Notes");
  const note = findNoteById(notesApp, args[0]);
  const newTitle = args[1];
  const bodyHtml = args[2];
  const titleHtml = args[3];

  if (bodyHtml !== null) {
    // The first line of the body is the note's title in Notes.app
    const heading = titleHtml !== null ? titleHtml : escapeHtml(note.name());
    note.body = "<div><b>" + heading + "</b></div><div><br></div><div>" + bodyHtml + "</div>";
  } else if (newTitle !== null) {
    note.name = newTitle;
  }

  return {
    id: note.id(),
    name: note.name(),
    modificationDate: note.modificationDate().toISOString(),
    success: true,
  };
"""
)

# args: [noteId, targetFolderId, trashName]
MOVE_NOTE_SCRIPT = (
    _JS_FIND_NOTE
    + _JS_FIND_FOLDER
    + _JS_FOLDER_OF
    + """
  const notesApp = Application("Notes");
  const note = findNoteById(notesApp, args[0]);
  const targetFolder = findFolderById(notesApp, args[1]);
  const trashName = args[2];

  if (targetFolder.name() === trashName) {
    throw new Error("Cannot move to Recently Deleted folder");
  }

  const noteId = note.id();
  const noteName = note.name();
  const previousFolderId = folderOf(note).id;

  notesApp.move(note, { to: targetFolder });

  return {
    id: noteId,
    name: noteName,
    previousFolderId: previousFolderId,
    newFolderId: targetFolder.id(),
    newFolderName: targetFolder.name(),
    success: true,
  };
"""
)

# args: [noteId]
DELETE_NOTE_SCRIPT = (
    _JS_FIND_NOTE
    + """
  const notesApp = Application("Notes");
  const note = findNoteById(notesApp, args[0]);
  const noteId = note.id();
  const noteName = note.name();

  // Notes.app moves deleted notes to Recently Deleted
  notesApp.delete(note);

  return { id: noteId, name: noteName, success: true };
"""
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def escape_html(text: str) -> str:
    """Escape text for a Notes HTML body; newlines become ``<br>``."""
    escaped = html.escape(text, quote=True)
    return escaped.replace("\r\n", "\n").replace("\n", "<br>")


def build_note_html(title: str, body: str) -> str:
    """HTML for a new note: bold title line, blank line, then the body."""
    return f"<div><b>{escape_html(title)}</b></div><div><br></div><div>{escape_html(body)}</div>"


def parse_date(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def count_words(text: str) -> int:
    return len(text.split())


def _translate_script_error(operation: str, error: JXAScriptError, key: str | None) -> NotesError:
    message = str(error)
    if "Note not found" in message:
        return NoteNotFoundError(f"Note not found: {key}" if key else message)
    if "Folder not found" in message:
        return FolderNotFoundError(message[message.index("Folder not found") :])
    return NotesError(f"Failed to {operation}: {message}")


def _execute(
    operation: str,
    script: str,
    args: Sequence[Any],
    timeout: float,
    key: str | None = None,
) -> Any:
    """Run *script* and map adapter errors onto the ``NotesError`` family."""
    try:
        return run_jxa(script, args, timeout=resolve_timeout(timeout))
    except JXAScriptError as e:
        raise _translate_script_error(operation, e, key) from e
    except JXAError as e:
        raise NotesError(f"Failed to {operation}: {e}") from e


def _validate(operation: str, model: type[T], data: Any) -> T:
    try:
        return TypeAdapter(model).validate_python(data)
    except ValidationError as e:
        raise NotesError(f"Failed to {operation}: unexpected result from Notes ({e})") from e


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def list_notes(
    limit: int = 10,
    include_preview: bool = False,
    folder_id: str | None = None,
) -> list[NoteMetadata]:
    """List notes, most recently modified first.

    ``Recently Deleted`` is never included. *limit* of 0 returns every note.
    """
    data = _execute(
        "list notes",
        LIST_NOTES_SCRIPT,
        [limit, include_preview, folder_id, PREVIEW_LENGTH, RECENTLY_DELETED],
        LIST_TIMEOUT,
    )
    return _validate("list notes", list[NoteMetadata], data)


def _date_matches(value: str, bound: str | None, after: bool, field: str) -> bool:
    if not bound:
        return True
    try:
        limit = parse_date(bound)
    except ValueError:
        raise ValueError(f"Invalid date for {field}: {bound!r}") from None
    moment = parse_date(value)
    return moment > limit if after else moment < limit


def apply_filters(notes: list[NoteMetadata], flt: ListNotesFilter | None) -> list[NoteMetadata]:
    """Keep notes matching every filter (AND logic). Date bounds are exclusive."""
    if flt is None:
        return list(notes)

    title_query = flt.title_contains.casefold() if flt.title_contains else None
    kept: list[NoteMetadata] = []
    for note in notes:
        if not _date_matches(note.creation_date, flt.created_after, True, "createdAfter"):
            continue
        if not _date_matches(note.creation_date, flt.created_before, False, "createdBefore"):
            continue
        if not _date_matches(note.modification_date, flt.modified_after, True, "modifiedAfter"):
            continue
        if not _date_matches(
            note.modification_date, flt.modified_before, False, "modifiedBefore"
        ):
            continue
        if title_query and title_query not in note.name.casefold():
            continue
        kept.append(note)
    return kept


_SORT_KEYS: dict[str, Callable[[NoteMetadata], Any]] = {
    "modificationDate": lambda n: parse_date(n.modification_date),
    "creationDate": lambda n: parse_date(n.creation_date),
    "title": lambda n: n.name.casefold(),
    "folder": lambda n: (n.folder_name or "").casefold(),
}


def sort_notes(
    notes: list[NoteMetadata],
    sort_by: str = "modificationDate",
    sort_order: str = "desc",
) -> list[NoteMetadata]:
    """Sort notes by one of the ``SORT_FIELDS``; ties keep their input order."""
    if sort_by not in _SORT_KEYS:
        raise ValueError(f"Unsupported sort field: {sort_by}")
    return sorted(notes, key=_SORT_KEYS[sort_by], reverse=sort_order == "desc")


def list_notes_extended(
    options: ListNotesOptions | dict[str, Any] | None = None,
) -> list[NoteMetadata]:
    """List notes with filtering and sorting.

    All notes (optionally restricted to one folder) are fetched, then
    filtered, sorted and finally cut to ``options.limit``.
    """
    if options is None:
        options = ListNotesOptions()
    elif isinstance(options, dict):
        options = ListNotesOptions.model_validate(options)

    notes = list_notes(
        limit=0, include_preview=options.include_preview, folder_id=options.folder_id
    )
    notes = apply_filters(notes, options.filter)
    notes = sort_notes(notes, options.sort_by, options.sort_order)
    return notes[: options.limit]


# ---------------------------------------------------------------------------
# Search and read
# ---------------------------------------------------------------------------


def search_notes(query: str, limit: int = 50) -> list[NoteMetadata]:
    """Case-insensitive search: title matches first, then body matches."""
    if not query or not query.strip():
        raise ValueError("Search query must not be empty")
    data = _execute("search notes", SEARCH_NOTES_SCRIPT, [query, limit], SEARCH_TIMEOUT)
    return _validate("search notes", list[NoteMetadata], data)


def read_note(name_or_id: str) -> NoteDetail:
    """Return a note's HTML body and plaintext; ID match wins over name match."""
    data = _execute(
        "read note", READ_NOTE_SCRIPT, [name_or_id], DEFAULT_TIMEOUT, key=name_or_id
    )
    return _validate("read note", NoteDetail, data)


def get_note_for_summary(name_or_id: str) -> NoteForSummary:
    """Return a note's plaintext with word and character counts."""
    data = _execute(
        "get note for summary",
        SUMMARY_NOTE_SCRIPT,
        [name_or_id],
        DEFAULT_TIMEOUT,
        key=name_or_id,
    )
    if isinstance(data, dict):
        plaintext = data.get("plaintext") or ""
        data = {
            **data,
            "plaintext": plaintext,
            "folderName": data.get("folderName") or "",
            "wordCount": count_words(plaintext),
            "characterCount": len(plaintext),
        }
    return _validate("get note for summary", NoteForSummary, data)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def create_note(title: str, body: str, folder_id: str | None = None) -> CreateNoteResult:
    """Create a note in *folder_id*, or the first folder of the first account."""
    data = _execute(
        "create note",
        CREATE_NOTE_SCRIPT,
        [title, build_note_html(title, body), folder_id, RECENTLY_DELETED],
        DEFAULT_TIMEOUT,
    )
    result = _validate("create note", CreateNoteResult, data)
    logger.info("Created note %s", result.id)
    return result


def list_folders() -> list[Folder]:
    """List every folder of every account except ``Recently Deleted``."""
    data = _execute("list folders", LIST_FOLDERS_SCRIPT, [RECENTLY_DELETED], DEFAULT_TIMEOUT)
    return _validate("list folders", list[Folder], data)


def update_note(
    note_id: str,
    title: str | None = None,
    body: str | None = None,
) -> UpdateNoteResult:
    """Change a note's title and/or body.

    A new body replaces the note's HTML; the heading is the new title if one
    is given, otherwise the current one.
    """
    if title is None and body is None:
        raise ValueError("At least one of title or body must be provided")
    if body is not None and len(body.encode("utf-8")) > MAX_BODY_BYTES:
        raise ValueError(f"Body exceeds maximum size of {MAX_BODY_BYTES // 1024}KB")

    escaped_body = escape_html(body) if body is not None else None
    escaped_title = escape_html(title) if title is not None else None
    data = _execute(
        "update note",
        UPDATE_NOTE_SCRIPT,
        [note_id, title, escaped_body, escaped_title],
        DEFAULT_TIMEOUT,
        key=note_id,
    )
    result = _validate("update note", UpdateNoteResult, data)
    logger.info("Updated note %s", note_id)
    return result


def move_note(note_id: str, target_folder_id: str) -> MoveNoteResult:
    """Move a note to another folder; ``Recently Deleted`` is refused."""
    data = _execute(
        "move note",
        MOVE_NOTE_SCRIPT,
        [note_id, target_folder_id, RECENTLY_DELETED],
        DEFAULT_TIMEOUT,
        key=note_id,
    )
    result = _validate("move note", MoveNoteResult, data)
    logger.info("Moved note %s to folder %s", note_id, target_folder_id)
    return result


def delete_note(note_id: str) -> DeleteNoteResult:
    """Delete a note. Notes.app keeps it in Recently Deleted."""
    data = _execute("delete note", DELETE_NOTE_SCRIPT, [note_id], DEFAULT_TIMEOUT, key=note_id)
    result = _validate("delete note", DeleteNoteResult, data)
    logger.info("Deleted note %s", note_id)
    return result
