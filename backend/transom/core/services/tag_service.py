from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING
from uuid import UUID

from transom.core.models.tag import Tag
from transom.core.schemas.tag_summary import TagSummary
from transom.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from transom.core.models.note import Note
    from transom.core.repositories.tag_repository import TagRepository


logger = get_logger(__name__)


class TagService:
    """Service for tags and project tags, scoped to the owning user."""

    def __init__(self, repo: TagRepository) -> None:
        self._repo = repo

    async def list_tags(self, user_id: UUID, *, is_project: bool | None = None) -> list[Tag]:
        """List the user's tags by name, optionally only project (or plain) tags."""
        tags = await self._repo.list(user_id=user_id)
        if is_project is None:
            return list(tags)
        return [t for t in tags if t.is_project == is_project]

    async def get_tag(self, tag_id: str | UUID, user_id: UUID) -> Tag | None:
        """Return tag if it exists and belongs to the user; otherwise None."""
        try:
            tag_uuid = UUID(str(tag_id))
        except ValueError:
            return None
        tag = await self._repo.get(tag_uuid)
        if tag and tag.user_id == user_id:
            return tag
        return None

    async def resolve_or_create(self, name: str, user_id: UUID, *, is_project: bool = False) -> Tag:
        """Find the user's tag with this name ignoring case, creating it when missing."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Tag name must not be empty")

        for tag in await self._repo.list(user_id=user_id):
            if tag.matches(name):
                return tag

        created = await self._repo.create(Tag(name=name, user_id=user_id, is_project=is_project))
        logger.info("Tag created", extra={"tag_id": str(created.id), "user_id": str(user_id)})
        return created

    async def update_tag(self, tag_id: str | UUID, user_id: UUID, *, name: str | None = None, is_project: bool | None = None) -> Tag | None:
        existing = await self.get_tag(tag_id, user_id)
        if not existing:
            return None

        changes: dict = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise ValueError("Tag name must not be empty")
            for other in await self._repo.list(user_id=user_id):
                if other.id != existing.id and other.matches(name):
                    raise ValueError(f"A tag named '{other.name}' already exists")
            changes["name"] = name
        if is_project is not None:
            changes["is_project"] = is_project
        if not changes:
            return existing
        return await self._repo.update_fields(existing.id, changes)

    async def delete_tag(self, tag_id: str | UUID, user_id: UUID) -> bool:
        tag = await self.get_tag(tag_id, user_id)
        if not tag:
            return False
        return await self._repo.delete(tag.id)

    async def summaries(self, user_id: UUID, notes: Iterable[Note]) -> list[TagSummary]:
        """Tags with the number of active thoughts using them, most used first."""
        counts = Counter(tag_id.lower() for note in notes if not note.is_archived for tag_id in note.tags)
        tags = await self._repo.list(user_id=user_id)
        summaries = [
            TagSummary(
                id=t.id,
                name=t.name,
                is_project=t.is_project,
                thought_count=counts.get(str(t.id), 0),
            )
            for t in tags
        ]
        summaries.sort(key=lambda s: (-s.thought_count, s.name.casefold()))
        return summaries
