"""Shared test fixtures for Apple Notes MCP tests."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from mac_notes_mcp.models import NoteMetadata


@pytest.fixture
def sample_notes() -> list[dict[str, Any]]:
    """Notes as the list script returns them (newest modification first)."""
    return [
        {
            "id": "note-1",
            "name": "Alpha Note",
            "modificationDate": "2024-01-15T10:00:00.000Z",
            "creationDate": "2024-01-10T08:00:00.000Z",
            "folderName": "Work",
            "folderId": "folder-1",
        },
        {
            "id": "note-2",
            "name": "Beta Note",
            "modificationDate": "2024-01-14T15:00:00.000Z",
            "creationDate": "2024-01-09T12:00:00.000Z",
            "folderName": "Personal",
            "folderId": "folder-2",
        },
        {
            "id": "note-3",
            "name": "Gamma Note",
            "modificationDate": "2024-01-13T09:00:00.000Z",
            "creationDate": "2024-01-08T14:00:00.000Z",
            "folderName": "Work",
            "folderId": "folder-1",
        },
    ]


@pytest.fixture
def sample_note_models(sample_notes: list[dict[str, Any]]) -> list[NoteMetadata]:
    return [NoteMetadata.model_validate(n) for n in sample_notes]


@pytest.fixture
def sample_folders() -> list[dict[str, Any]]:
    return [
        {"id": "folder-1", "name": "Work", "accountName": "iCloud", "noteCount": 2},
        {"id": "folder-2", "name": "Personal", "accountName": "iCloud", "noteCount": 1},
        {"id": "folder-3", "name": "Archive", "accountName": "On My Mac", "noteCount": 0},
    ]


@pytest.fixture
def sample_detail() -> dict[str, Any]:
    return {
        "id": "note-1",
        "name": "Alpha Note",
        "body": "<div><b>Alpha Note</b></div><div>Budget review on Friday.</div>",
        "plaintext": "Alpha Note\nBudget review on Friday.",
        "modificationDate": "2024-01-15T10:00:00.000Z",
        "creationDate": "2024-01-10T08:00:00.000Z",
        "folderName": "Work",
        "folderId": "folder-1",
    }


@pytest.fixture
def mock_jxa() -> Iterator[MagicMock]:
    """Replace the JXA runner used by the notes service."""
    with patch("mac_notes_mcp.notes.run_jxa") as mock:
        yield mock
