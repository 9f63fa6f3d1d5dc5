"""Tests for request/response models: aliases, defaults and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from mac_notes_mcp.models import (
    Folder,
    ListNotesOptions,
    NoteMetadata,
    SearchNotesArgs,
    UpdateNoteArgs,
    dump,
)


class TestAliases:
    def test_accepts_camel_case(self) -> None:
        note = NoteMetadata.model_validate(
            {
                "id": "n",
                "name": "N",
                "modificationDate": "2024-01-01T00:00:00Z",
                "creationDate": "2024-01-01T00:00:00Z",
                "folderName": "Work",
            }
        )
        assert note.folder_name == "Work"

    def test_accepts_snake_case(self) -> None:
        folder = Folder(id="f", name="Work", account_name="iCloud", note_count=3)
        assert folder.account_name == "iCloud"

    def test_dump_uses_camel_case_and_drops_unset(self) -> None:
        note = NoteMetadata(
            id="n", name="N", modification_date="2024-01-01", creation_date="2024-01-01"
        )
        assert dump(note) == {
            "id": "n",
            "name": "N",
            "modificationDate": "2024-01-01",
            "creationDate": "2024-01-01",
        }

    def test_dump_list(self) -> None:
        folders = [Folder(id="f", name="Work", account_name="iCloud", note_count=0)]
        assert dump(folders) == [
            {"id": "f", "name": "Work", "accountName": "iCloud", "noteCount": 0}
        ]


class TestListNotesOptions:
    def test_defaults(self) -> None:
        options = ListNotesOptions()
        assert options.limit == 100
        assert options.include_preview is False
        assert options.sort_by == "modificationDate"
        assert options.sort_order == "desc"
        assert options.filter is None

    def test_valid_options(self) -> None:
        options = ListNotesOptions.model_validate(
            {
                "limit": 10,
                "sortBy": "modificationDate",
                "sortOrder": "desc",
                "filter": {"createdAfter": "2024-01-01"},
            }
        )
        assert options.filter is not None
        assert options.filter.created_after == "2024-01-01"

    def test_rejects_invalid_sort_by(self) -> None:
        with pytest.raises(ValidationError):
            ListNotesOptions.model_validate({"sortBy": "invalid"})

    def test_rejects_invalid_sort_order(self) -> None:
        with pytest.raises(ValidationError):
            ListNotesOptions.model_validate({"sortOrder": "sideways"})

    def test_rejects_zero_limit(self) -> None:
        with pytest.raises(ValidationError):
            ListNotesOptions.model_validate({"limit": 0})


class TestToolArgs:
    def test_search_requires_query(self) -> None:
        with pytest.raises(ValidationError):
            SearchNotesArgs.model_validate({})

    def test_search_rejects_blank_query(self) -> None:
        with pytest.raises(ValidationError):
            SearchNotesArgs.model_validate({"query": "  "})

    def test_search_default_limit(self) -> None:
        assert SearchNotesArgs.model_validate({"query": "x"}).limit == 50

    def test_update_uses_note_id_alias(self) -> None:
        args = UpdateNoteArgs.model_validate({"noteId": "note-1", "title": "T"})
        assert args.note_id == "note-1"
        assert args.body is None
