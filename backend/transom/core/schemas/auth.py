from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from transom.core.models.base import AppBaseModel


class AuthUser(AppBaseModel):
    """Authenticated user extracted from Supabase JWT."""

    id: UUID
    email: str
    name: str | None = None
    role: str | None = None
