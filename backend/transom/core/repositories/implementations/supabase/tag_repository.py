from __future__ import annotations

from typing import TYPE_CHECKING, Any

from transom.core.models.tag import Tag
from transom.core.repositories.implementations.supabase.base import SupabaseTableRepository
from transom.core.repositories.tag_repository import TagRepository
from transom.db.base import TAGS_TABLE

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID


class SupabaseTagRepository(SupabaseTableRepository, TagRepository):
    """Supabase implementation of the TagRepository (`tags` table)."""

    TABLE_NAME = TAGS_TABLE

    async def create(self, tag: Tag) -> Tag:
        data = await self._insert_row(self._tag_to_row(tag))
        return Tag.model_validate(data)

    async def get(self, tag_id: UUID) -> Tag | None:
        row = await self._get_row(tag_id)
        return Tag.model_validate(row) if row else None

    async def list(self, *, user_id: UUID) -> Sequence[Tag]:
        rows = await self._list_rows(column="user_id", value=user_id, order="name", desc=False)
        return [Tag.model_validate(r) for r in rows]

    async def update_fields(self, tag_id: UUID, changes: dict) -> Tag | None:
        # Callers use model field names; the column keeps the mobile app's name
        if "is_project" in changes:
            changes = {**changes, "is_piece": changes["is_project"]}
            changes.pop("is_project")
        row = await self._update_row(tag_id, changes)
        return Tag.model_validate(row) if row else None

    async def delete(self, tag_id: UUID) -> bool:
        return await self._delete_row(tag_id)

    @classmethod
    def _tag_to_row(cls, tag: Tag) -> dict[str, Any]:
        data = cls._serialize(tag.model_dump(by_alias=True))
        if data.get("updated_at") is None:
            data["updated_at"] = data["created_at"]
        return data
