from __future__ import annotations

from typing import TYPE_CHECKING, Any

from transom.core.models.project import Project
from transom.core.repositories.implementations.supabase.base import SupabaseTableRepository
from transom.core.repositories.project_repository import ProjectRepository
from transom.db.base import PROJECTS_TABLE

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID


class SupabaseProjectRepository(SupabaseTableRepository, ProjectRepository):
    """Supabase implementation of the ProjectRepository (`projects` table)."""

    TABLE_NAME = PROJECTS_TABLE

    async def create(self, project: Project) -> Project:
        data = await self._insert_row(self._project_to_row(project))
        return Project.model_validate(data)

    async def get(self, project_id: UUID) -> Project | None:
        row = await self._get_row(project_id)
        return Project.model_validate(row) if row else None

    async def list(self, *, user_id: UUID) -> Sequence[Project]:
        rows = await self._list_rows(column="user_id", value=user_id, order="updated_at", desc=True)
        return [Project.model_validate(r) for r in rows]

    async def update_fields(self, project_id: UUID, changes: dict) -> Project | None:
        row = await self._update_row(project_id, changes)
        return Project.model_validate(row) if row else None

    async def delete(self, project_id: UUID) -> bool:
        return await self._delete_row(project_id)

    @classmethod
    def _project_to_row(cls, project: Project) -> dict[str, Any]:
        data = cls._serialize(project.model_dump())
        if data.get("updated_at") is None:
            data["updated_at"] = data["created_at"]
        return data
