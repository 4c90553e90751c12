from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from transom.core.models.user import UserProfile


class ProfileRepository(ABC):
    """Abstract repository interface for user profiles."""

    @abstractmethod
    async def get(self, user_id: UUID) -> UserProfile | None:  # pragma: no cover - interface only
        """Fetch a profile by user id."""

    @abstractmethod
    async def upsert(self, profile: UserProfile) -> UserProfile:  # pragma: no cover
        """Create the profile or merge it into the existing row."""
