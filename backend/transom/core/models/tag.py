from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import Field, field_validator

from .base import TimestampedModel


class Tag(TimestampedModel):
    """Tag domain model.

    Project tags live in the same table as plain tags; the mobile app calls
    them "pieces" and flags them with the ``is_piece`` column.
    """

    id: UUID = Field(default_factory=uuid4, description="Unique tag identifier")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    user_id: UUID = Field(default_factory=uuid4, description="Owner of the tag")
    is_project: bool = Field(default=False, alias="is_piece", description="True for project tags")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Tag name must not be blank")
        return stripped

    def matches(self, name: str) -> bool:
        """Case-insensitive name comparison used when resolving tags."""
        return self.name.casefold() == name.strip().casefold()
