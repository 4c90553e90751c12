from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from transom.core.content import decode, ensure_document, is_empty, is_text_reversed, reverse_text
from transom.core.models.note import Note, unique_tag_ids
from transom.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from transom.core.models.tag import Tag
    from transom.core.repositories.note_repository import NoteRepository
    from transom.core.services.tag_service import TagService


logger = get_logger(__name__)

_UPDATABLE_FIELDS = {"content", "tags", "project_id", "is_archived"}


class NoteService:
    """Service for managing thoughts with user-scoped access (RLS friendly).

    Content arriving from the web editor is converted to the mobile dialect
    before it is stored; documents already in the dialect are kept as they are.
    """

    def __init__(self, repo: NoteRepository, tags: TagService | None = None) -> None:
        self._repo = repo
        self._tags = tags

    async def create_note(self, create_dto, user_id: UUID) -> Note:
        """Create a thought for a user. Missing content yields the canonical empty document."""
        note = Note(
            id=uuid4(),
            content=ensure_document(getattr(create_dto, "content", None)),
            tags=getattr(create_dto, "tags", None) or [],
            user_id=user_id,
            project_id=getattr(create_dto, "project_id", None),
        )
        created = await self._repo.create(note)
        logger.info("Thought created", extra={"note_id": str(created.id), "user_id": str(user_id)})
        return created

    async def get_note(self, note_id: str | UUID, user_id: UUID) -> Note | None:
        """Return note if it exists and belongs to the user; otherwise None."""
        try:
            note_uuid = UUID(str(note_id))
        except ValueError:
            return None
        note = await self._repo.get(note_uuid)
        if note and note.user_id == user_id:
            return note
        return None

    async def list_notes(self, user_id: UUID) -> Sequence[Note]:
        """The user's full collection, archived thoughts included."""
        return await self._repo.list(user_id=user_id)

    async def get_editable_content(self, note_id: str | UUID, user_id: UUID) -> tuple[Note, str] | None:
        note = await self.get_note(note_id, user_id)
        if not note:
            return None
        return note, decode(note.content)

    async def update_note(self, note_id: str | UUID, update_dto, user_id: UUID) -> Note | None:
        """Apply the fields explicitly set on an update schema."""
        return await self.apply_changes(note_id, update_dto.model_dump(exclude_unset=True), user_id)

    async def apply_changes(self, note_id: str | UUID, changes: dict[str, Any], user_id: UUID) -> Note | None:
        """Persist a partial change set on a user's note.

        Ensures ownership and converts editor content into the stored dialect.
        """
        existing = await self.get_note(note_id, user_id)
        if not existing:
            return None

        sanitized: dict[str, Any] = {}
        for key, value in (changes or {}).items():
            if key not in _UPDATABLE_FIELDS:
                continue
            if key == "content":
                value = ensure_document(value)
            elif key == "tags":
                value = unique_tag_ids(value)
            sanitized[key] = value

        if not sanitized:
            return existing
        return await self._repo.update_fields(existing.id, sanitized)

    async def archive_note(self, note_id: str | UUID, user_id: UUID) -> Note | None:
        return await self.apply_changes(note_id, {"is_archived": True}, user_id)

    async def unarchive_note(self, note_id: str | UUID, user_id: UUID) -> Note | None:
        return await self.apply_changes(note_id, {"is_archived": False}, user_id)

    async def delete_note(self, note_id: str | UUID, user_id: UUID) -> bool:
        """Delete a user's note if it exists and belongs to them."""
        note = await self.get_note(note_id, user_id)
        if not note:
            return False
        deleted = await self._repo.delete(note.id)
        if deleted:
            logger.info("Thought deleted", extra={"note_id": str(note.id), "user_id": str(user_id)})
        return deleted

    async def delete_if_empty(self, note_id: str | UUID, user_id: UUID) -> bool:
        """Delete the note when it has no visible text. Returns True if deleted."""
        note = await self.get_note(note_id, user_id)
        if not note or not is_empty(note.content):
            return False
        return await self._repo.delete(note.id)

    async def add_tag(self, note_id: str | UUID, tag_name: str, user_id: UUID) -> tuple[Note, Tag] | None:
        """Apply a tag by name, creating the tag on first use. Applying twice is a no-op."""
        if self._tags is None:
            raise RuntimeError("NoteService was built without a TagService")
        note = await self.get_note(note_id, user_id)
        if not note:
            return None

        tag = await self._tags.resolve_or_create(tag_name, user_id)
        if note.has_tag(tag.id):
            return note, tag

        updated = await self._repo.update_fields(note.id, {"tags": [*note.tags, str(tag.id)]})
        return (updated or note), tag

    async def remove_tag(self, note_id: str | UUID, tag_id: str | UUID, user_id: UUID) -> Note | None:
        note = await self.get_note(note_id, user_id)
        if not note:
            return None
        wanted = str(tag_id).lower()
        remaining = [t for t in note.tags if t.lower() != wanted]
        if len(remaining) == len(note.tags):
            return note
        return await self._repo.update_fields(note.id, {"tags": remaining})

    async def detach_tag(self, tag_id: str | UUID, user_id: UUID) -> int:
        """Remove a tag id from every note of the user. Returns the number of notes changed."""
        changed = 0
        for note in await self._repo.list(user_id=user_id):
            if note.has_tag(tag_id):
                await self.remove_tag(note.id, tag_id, user_id)
                changed += 1
        return changed

    async def repair_direction(self, note_id: str | UUID, user_id: UUID) -> tuple[Note, bool] | None:
        """Rewrite a note whose text was stored reversed. Returns the note and whether it changed."""
        note = await self.get_note(note_id, user_id)
        if not note:
            return None
        if not is_text_reversed(note.content):
            logger.debug("Thought does not need direction repair", extra={"note_id": str(note.id)})
            return note, False

        updated = await self._repo.update_fields(note.id, {"content": reverse_text(note.content)})
        logger.info("Repaired reversed thought", extra={"note_id": str(note.id)})
        return (updated or note), True
