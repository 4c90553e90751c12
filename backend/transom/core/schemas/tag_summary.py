from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from transom.core.models.base import AppBaseModel


class TagSummary(AppBaseModel):
    """A tag together with the number of active thoughts carrying it."""

    id: UUID
    name: str
    is_project: bool
    thought_count: int
