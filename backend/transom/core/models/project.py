from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import Field

from .base import TimestampedModel


class Project(TimestampedModel):
    """Project domain model."""

    id: UUID = Field(default_factory=uuid4, description="Unique project identifier")
    name: str = Field(..., min_length=1, max_length=255, description="Project name")
    description: str | None = Field(default=None, max_length=2000)
    user_id: UUID = Field(default_factory=uuid4, description="Owner of the project")
    # Denormalized; refreshed after note changes
    note_count: int = Field(default=0, ge=0)
