from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from transom.core.models.project import Project
from transom.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from transom.core.repositories.note_repository import NoteRepository
    from transom.core.repositories.project_repository import ProjectRepository


logger = get_logger(__name__)

_UPDATABLE_FIELDS = {"name", "description"}


class ProjectService:
    """Service for the user's projects and the thoughts filed under them."""

    def __init__(self, repo: ProjectRepository, notes: NoteRepository) -> None:
        self._repo = repo
        self._notes = notes

    async def create_project(self, create_dto, user_id: UUID) -> Project:
        project = Project(
            name=create_dto.name.strip(),
            description=getattr(create_dto, "description", None),
            user_id=user_id,
        )
        created = await self._repo.create(project)
        logger.info("Project created", extra={"project_id": str(created.id), "user_id": str(user_id)})
        return created

    async def list_projects(self, user_id: UUID) -> Sequence[Project]:
        return await self._repo.list(user_id=user_id)

    async def get_project(self, project_id: str | UUID, user_id: UUID) -> Project | None:
        """Return project if it exists and belongs to the user; otherwise None."""
        try:
            project_uuid = UUID(str(project_id))
        except ValueError:
            return None
        project = await self._repo.get(project_uuid)
        if project and project.user_id == user_id:
            return project
        return None

    async def update_project(self, project_id: str | UUID, update_dto, user_id: UUID) -> Project | None:
        existing = await self.get_project(project_id, user_id)
        if not existing:
            return None

        changes: dict[str, Any] = {
            k: v for k, v in update_dto.model_dump(exclude_unset=True).items() if k in _UPDATABLE_FIELDS
        }
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValueError("Project name must not be empty")
            changes["name"] = name
        if not changes:
            return existing
        return await self._repo.update_fields(existing.id, changes)

    async def delete_project(self, project_id: str | UUID, user_id: UUID) -> bool:
        """Delete a project together with the user's thoughts filed under it."""
        project = await self.get_project(project_id, user_id)
        if not project:
            return False

        removed = 0
        for note in await self._notes.list_by_project(project.id):
            if note.user_id != user_id:
                continue
            if await self._notes.delete(note.id):
                removed += 1

        deleted = await self._repo.delete(project.id)
        logger.info(
            "Project deleted",
            extra={"project_id": str(project.id), "user_id": str(user_id), "notes_removed": removed},
        )
        return deleted

    async def refresh_note_count(self, project_id: str | UUID, user_id: UUID) -> Project | None:
        """Recount the active thoughts filed under a project."""
        project = await self.get_project(project_id, user_id)
        if not project:
            return None
        notes = await self._notes.list_by_project(project.id)
        count = sum(1 for n in notes if n.user_id == user_id and not n.is_archived)
        if count == project.note_count:
            return project
        return await self._repo.update_fields(project.id, {"note_count": count})
