from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from uuid import UUID  # noqa: TCH003

from pydantic import Field

from transom.core.models.base import AppBaseModel


class ProjectCreate(AppBaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)


class ProjectUpdate(AppBaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)


class ProjectRead(AppBaseModel):
    id: UUID
    name: str
    description: str | None
    note_count: int
    created_at: datetime
    updated_at: datetime | None
