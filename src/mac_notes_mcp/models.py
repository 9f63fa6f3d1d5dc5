"""Typed request and response models.

Field names follow Python conventions; the camelCase aliases are the names
used on the wire (tool arguments and JSON output). Both spellings are
accepted on input.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .config import (
    DEFAULT_LIST_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SORT_BY,
    DEFAULT_SORT_ORDER,
)

SortBy = Literal["modificationDate", "creationDate", "title", "folder"]
SortOrder = Literal["asc", "desc"]


class NotesModel(BaseModel):
    """Base model: camelCase aliases, either spelling accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class NoteMetadata(NotesModel):
    id: str
    name: str
    modification_date: str
    creation_date: str
    folder_name: str | None = None
    folder_id: str | None = None
    preview: str | None = None


class NoteDetail(NoteMetadata):
    body: str
    plaintext: str


class NoteForSummary(NotesModel):
    id: str
    name: str
    plaintext: str
    creation_date: str
    modification_date: str
    folder_name: str
    word_count: int
    character_count: int


class CreateNoteResult(NotesModel):
    id: str
    name: str


class Folder(NotesModel):
    id: str
    name: str
    account_name: str
    note_count: int


class UpdateNoteResult(NotesModel):
    id: str
    name: str
    modification_date: str
    success: bool


class MoveNoteResult(NotesModel):
    id: str
    name: str
    previous_folder_id: str
    new_folder_id: str
    new_folder_name: str
    success: bool


class DeleteNoteResult(NotesModel):
    id: str
    name: str
    success: bool


# ---------------------------------------------------------------------------
# Options and tool arguments
# ---------------------------------------------------------------------------


class ListNotesFilter(NotesModel):
    created_after: str | None = Field(None, description="Created after this ISO date")
    created_before: str | None = Field(None, description="Created before this ISO date")
    modified_after: str | None = Field(None, description="Modified after this ISO date")
    modified_before: str | None = Field(None, description="Modified before this ISO date")
    title_contains: str | None = Field(
        None, description="Title contains this text (case-insensitive)"
    )


class ListNotesOptions(NotesModel):
    limit: int = Field(DEFAULT_LIST_LIMIT, ge=1)
    include_preview: bool = False
    folder_id: str | None = None
    sort_by: SortBy = DEFAULT_SORT_BY
    sort_order: SortOrder = DEFAULT_SORT_ORDER
    filter: ListNotesFilter | None = None


class SearchNotesArgs(NotesModel):
    query: str
    limit: int = Field(DEFAULT_SEARCH_LIMIT, ge=1)

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be empty")
        return value


class ReadNoteArgs(NotesModel):
    name_or_id: str = Field(min_length=1)


class CreateNoteArgs(NotesModel):
    title: str
    body: str
    folder_id: str | None = None


class UpdateNoteArgs(NotesModel):
    note_id: str = Field(min_length=1)
    title: str | None = None
    body: str | None = None


class MoveNoteArgs(NotesModel):
    note_id: str = Field(min_length=1)
    target_folder_id: str = Field(min_length=1)


class DeleteNoteArgs(NotesModel):
    note_id: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def dump(data: BaseModel | list[BaseModel]) -> Any:
    """Convert a model (or list of models) to wire-format plain data."""
    if isinstance(data, list):
        return [dump(item) for item in data]
    return data.model_dump(by_alias=True, exclude_none=True)
