from __future__ import annotations

from typing import TYPE_CHECKING

from transom.core.models.base import utc_now
from transom.core.models.user import UserProfile
from transom.core.repositories.implementations.supabase.base import SupabaseTableRepository
from transom.core.repositories.profile_repository import ProfileRepository
from transom.db.base import PROFILES_TABLE

if TYPE_CHECKING:
    from uuid import UUID


class SupabaseProfileRepository(SupabaseTableRepository, ProfileRepository):
    """Supabase implementation of the ProfileRepository (`profiles` table)."""

    TABLE_NAME = PROFILES_TABLE

    async def get(self, user_id: UUID) -> UserProfile | None:
        row = await self._get_row(user_id)
        return UserProfile.model_validate(row) if row else None

    async def upsert(self, profile: UserProfile) -> UserProfile:
        row = profile.model_dump(exclude={"created_at"})
        row["updated_at"] = utc_now()
        data = await self._upsert_row(self._serialize(row))
        return UserProfile.model_validate(data or {**row, "created_at": profile.created_at})
