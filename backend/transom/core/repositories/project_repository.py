from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from transom.core.models.project import Project


class ProjectRepository(ABC):
    """Abstract repository interface for projects."""

    @abstractmethod
    async def create(self, project: Project) -> Project:  # pragma: no cover - interface only
        """Persist a new project and return the stored entity."""

    @abstractmethod
    async def get(self, project_id: UUID) -> Project | None:  # pragma: no cover
        """Fetch a project by id or return None if not found."""

    @abstractmethod
    async def list(self, *, user_id: UUID) -> Sequence[Project]:  # pragma: no cover
        """Return the user's projects, most recently updated first."""

    @abstractmethod
    async def update_fields(self, project_id: UUID, changes: dict) -> Project | None:  # pragma: no cover
        """Partially update a project, or return None if missing."""

    @abstractmethod
    async def delete(self, project_id: UUID) -> bool:  # pragma: no cover
        """Delete a project by id. Return True if a row was removed."""
