from __future__ import annotations

from typing import TYPE_CHECKING, Any

from transom.core.models.note import Note
from transom.core.repositories.implementations.supabase.base import SupabaseTableRepository
from transom.core.repositories.note_repository import NoteRepository
from transom.db.base import NOTES_TABLE

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID


class SupabaseNoteRepository(SupabaseTableRepository, NoteRepository):
    """Supabase implementation of the NoteRepository.

    Assumes a `notes` table shared with the mobile app, with columns matching
    the `Note` model fields and `tags` stored as a text array of tag ids.
    """

    TABLE_NAME = NOTES_TABLE

    async def create(self, note: Note) -> Note:
        data = await self._insert_row(self._note_to_row(note))
        return self._row_to_note(data)

    async def get(self, note_id: UUID) -> Note | None:
        row = await self._get_row(note_id)
        return self._row_to_note(row) if row else None

    async def list(self, *, user_id: UUID) -> Sequence[Note]:
        rows = await self._list_rows(column="user_id", value=user_id, order="updated_at", desc=True)
        return [self._row_to_note(r) for r in rows]

    async def list_by_project(self, project_id: UUID) -> Sequence[Note]:
        rows = await self._list_rows(column="project_id", value=project_id, order="updated_at", desc=True)
        return [self._row_to_note(r) for r in rows]

    async def update_fields(self, note_id: UUID, changes: dict) -> Note | None:
        row = await self._update_row(note_id, changes)
        return self._row_to_note(row) if row else None

    async def delete(self, note_id: UUID) -> bool:
        return await self._delete_row(note_id)

    @staticmethod
    def _row_to_note(row: dict[str, Any]) -> Note:
        # Normalize nullable columns for Pydantic constraints
        normalized = dict(row)
        if normalized.get("tags") is None:
            normalized["tags"] = []
        if normalized.get("is_archived") is None:
            normalized["is_archived"] = False
        return Note.model_validate(normalized)

    @classmethod
    def _note_to_row(cls, note: Note) -> dict[str, Any]:
        data = cls._serialize(note.model_dump())
        if data.get("project_id") is None:
            data.pop("project_id", None)
        if data.get("updated_at") is None:
            data["updated_at"] = data["created_at"]
        return data
