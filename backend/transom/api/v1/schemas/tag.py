from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from uuid import UUID  # noqa: TCH003

from pydantic import Field

from transom.core.models.base import AppBaseModel


class TagCreate(AppBaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    is_project: bool = False


class TagUpdate(AppBaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    is_project: bool | None = None


class TagRead(AppBaseModel):
    id: UUID
    name: str
    is_project: bool
    created_at: datetime
    updated_at: datetime | None


class TagDeleted(AppBaseModel):
    id: UUID
    detached_from: int = Field(..., description="Number of thoughts the tag was removed from")
