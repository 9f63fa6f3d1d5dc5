"""Tests for output formatting."""

from __future__ import annotations

import json

from mac_notes_mcp.formatter import (
    format_folders,
    format_json,
    format_note_detail,
    format_note_line,
    format_notes,
    format_summary,
)
from mac_notes_mcp.models import Folder, NoteDetail, NoteForSummary, NoteMetadata


class TestFormatJson:
    def test_model_list(self, sample_note_models: list[NoteMetadata]) -> None:
        parsed = json.loads(format_json(sample_note_models))
        assert parsed[0]["modificationDate"] == "2024-01-15T10:00:00.000Z"
        assert "preview" not in parsed[0]

    def test_single_model(self) -> None:
        folder = Folder(id="f", name="Café", account_name="iCloud", note_count=1)
        output = format_json(folder)
        assert "Café" in output
        assert json.loads(output)["noteCount"] == 1

    def test_empty_list(self) -> None:
        assert json.loads(format_json([])) == []

    def test_plain_data(self) -> None:
        assert json.loads(format_json({"a": 1})) == {"a": 1}


class TestFormatNoteLine:
    def test_includes_id_name_folder(self, sample_note_models: list[NoteMetadata]) -> None:
        line = format_note_line(sample_note_models[0])
        assert line == "[note-1] Alpha Note (Work) modified 2024-01-15 10:00"

    def test_preview_on_second_line(self, sample_note_models: list[NoteMetadata]) -> None:
        note = sample_note_models[0].model_copy(update={"preview": "Budget review"})
        assert format_note_line(note).endswith("\n  > Budget review")

    def test_no_folder(self) -> None:
        note = NoteMetadata(
            id="n", name="N", modification_date="2024-01-01", creation_date="2024-01-01"
        )
        assert "()" not in format_note_line(note)


class TestFormatNotes:
    def test_count_footer(self, sample_note_models: list[NoteMetadata]) -> None:
        assert "3 note(s)" in format_notes(sample_note_models)

    def test_empty(self) -> None:
        assert format_notes([]) == "No notes found."


class TestFormatDetail:
    def test_header_and_body(self, sample_detail: dict) -> None:
        result = format_note_detail(NoteDetail.model_validate(sample_detail))
        assert result.startswith("# Alpha Note")
        assert "folder: Work" in result
        assert "Budget review on Friday." in result

    def test_summary_counts(self) -> None:
        note = NoteForSummary(
            id="n",
            name="N",
            plaintext="two words",
            creation_date="2024-01-01",
            modification_date="2024-01-02",
            folder_name="Work",
            word_count=2,
            character_count=9,
        )
        result = format_summary(note)
        assert "words: 2" in result
        assert "characters: 9" in result


class TestFormatFolders:
    def test_grouped_by_account(self, sample_folders: list[dict]) -> None:
        folders = [Folder.model_validate(f) for f in sample_folders]
        result = format_folders(folders)
        assert "iCloud:" in result
        assert "On My Mac:" in result
        assert "[folder-1] Work  (2)" in result

    def test_empty(self) -> None:
        assert format_folders([]) == "No folders found."
