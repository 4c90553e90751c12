from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from uuid import UUID  # noqa: TCH003

from pydantic import Field, computed_field, field_validator

from transom.config import settings
from transom.core.content import preview
from transom.core.models.base import AppBaseModel
from transom.core.models.note import unique_tag_ids


def _normalize_tag_ids(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    return unique_tag_ids(v)


class NoteCreate(AppBaseModel):
    content: str | None = Field(
        default=None,
        max_length=200_000,
        description="Editable HTML fragment, plain text, or a dialect document; empty creates a blank thought",
    )
    tags: list[str] = Field(default_factory=list, description="Tag ids to apply")
    project_id: UUID | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return _normalize_tag_ids(v) or []


class NoteUpdate(AppBaseModel):
    content: str | None = Field(default=None, max_length=200_000)
    tags: list[str] | None = None
    project_id: UUID | None = None
    is_archived: bool | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tag_ids(v)


class NoteRead(AppBaseModel):
    id: UUID
    content: str
    tags: list[str]
    user_id: UUID
    project_id: UUID | None
    is_archived: bool
    created_at: datetime
    updated_at: datetime | None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def preview(self) -> str:
        return preview(self.content, settings.preview_length)


class NoteEditable(AppBaseModel):
    """A note with its content converted to the editor's fragment form."""

    id: UUID
    content: str
    tags: list[str]
    project_id: UUID | None
    is_archived: bool
    updated_at: datetime | None


class TagAssignment(AppBaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class DraftUpdate(AppBaseModel):
    content: str | None = Field(default=None, max_length=200_000)
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tag_ids(v)


class DraftStatus(AppBaseModel):
    note_id: UUID
    state: str
    deleted: bool = False


class DirectionRepair(AppBaseModel):
    repaired: bool
    note: NoteRead
