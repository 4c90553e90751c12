from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from enum import Enum
from uuid import UUID  # noqa: TCH003

from pydantic import Field

from transom.core.models.base import AppBaseModel


class ArchiveState(str, Enum):
    """Which side of the archive a listing shows."""

    ACTIVE = "active"
    ARCHIVED = "archived"
    ALL = "all"


class NoteSort(str, Enum):
    UPDATED = "updated"
    CREATED = "created"
    ALPHABETICAL = "alphabetical"


class NoteFilter(AppBaseModel):
    """Client-side filter applied to a user's full note collection.

    Tag filters match a note carrying any of the given tags unless
    ``match_all_tags`` is set, in which case every tag must be present.
    """

    query: str | None = Field(default=None, max_length=500)
    tag_ids: list[str] = Field(default_factory=list)
    match_all_tags: bool = False
    archive: ArchiveState = ArchiveState.ACTIVE
    project_id: UUID | None = None
    updated_from: datetime | None = None
    updated_to: datetime | None = None
    sort: NoteSort = NoteSort.UPDATED
    limit: int | None = Field(default=None, ge=1, le=1000)
