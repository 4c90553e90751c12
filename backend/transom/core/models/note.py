from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import Field, field_validator

from transom.core.content import ensure_document
from transom.core.content.dialect import EMPTY_DOCUMENT

from .base import TimestampedModel


def unique_tag_ids(values: list[str] | None) -> list[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    unique: list[str] = []
    for tag_id in values or []:
        tag_id = str(tag_id).strip()
        if tag_id and tag_id not in unique:
            unique.append(tag_id)
    return unique


class Note(TimestampedModel):
    """A thought. Content is always stored as a mobile dialect document."""

    id: UUID = Field(default_factory=uuid4, description="Unique note identifier")

    content: str = Field(default=EMPTY_DOCUMENT, description="Note content as a dialect document")

    # Tag ids, project tags included
    tags: list[str] = Field(default_factory=list, description="Identifiers of tags applied to the note")

    user_id: UUID = Field(default_factory=uuid4, description="Owner of the note")
    project_id: UUID | None = Field(default=None, description="Project the note was filed under")

    is_archived: bool = Field(default=False, description="Whether note is archived")

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v: str | None) -> str:
        """Replace missing or fragment content with a valid document."""
        return ensure_document(v)

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str]:
        return unique_tag_ids(v)

    def has_tag(self, tag_id: str | UUID) -> bool:
        # iOS writes upper-case UUID strings
        wanted = str(tag_id).lower()
        return any(t.lower() == wanted for t in self.tags)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": str(uuid4()),
                    "content": EMPTY_DOCUMENT,
                    "tags": [str(uuid4())],
                    "user_id": str(uuid4()),
                    "is_archived": False,
                }
            ]
        }
    }
