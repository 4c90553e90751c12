from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from transom.core.models.note import Note


class NoteRepository(ABC):
    """Abstract repository interface for notes.

    Contract used by services and dependency injection. Implementations should
    perform I/O (database, network) and therefore expose async methods. Only
    owner equality and single-column ordering are expected from the store;
    everything else is filtered by the services.
    """

    @abstractmethod
    async def create(self, note: Note) -> Note:  # pragma: no cover - interface only
        """Persist a new note and return the stored entity."""

    @abstractmethod
    async def get(self, note_id: UUID) -> Note | None:  # pragma: no cover
        """Fetch a note by id or return None if not found."""

    @abstractmethod
    async def list(self, *, user_id: UUID) -> Sequence[Note]:  # pragma: no cover
        """Return every note owned by the user, most recently updated first."""

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> Sequence[Note]:  # pragma: no cover
        """Return every note filed under a project."""

    @abstractmethod
    async def update_fields(self, note_id: UUID, changes: dict) -> Note | None:  # pragma: no cover
        """Partially update fields on a note and return the updated entity, or None if missing."""

    @abstractmethod
    async def delete(self, note_id: UUID) -> bool:  # pragma: no cover
        """Delete a note by id. Return True if a row was removed, False otherwise."""
