from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from transom.core.models.tag import Tag


class TagRepository(ABC):
    """Abstract repository interface for tags and project tags."""

    @abstractmethod
    async def create(self, tag: Tag) -> Tag:  # pragma: no cover - interface only
        """Persist a new tag and return the stored entity."""

    @abstractmethod
    async def get(self, tag_id: UUID) -> Tag | None:  # pragma: no cover
        """Fetch a tag by id or return None if not found."""

    @abstractmethod
    async def list(self, *, user_id: UUID) -> Sequence[Tag]:  # pragma: no cover
        """Return every tag owned by the user ordered by name."""

    @abstractmethod
    async def update_fields(self, tag_id: UUID, changes: dict) -> Tag | None:  # pragma: no cover
        """Partially update a tag, or return None if missing."""

    @abstractmethod
    async def delete(self, tag_id: UUID) -> bool:  # pragma: no cover
        """Delete a tag by id. Return True if a row was removed."""
