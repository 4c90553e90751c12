from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from .base import TimestampedModel


def get_initials(name: str) -> str:
    """Two-letter initials from a display name or email address."""
    parts = name.split()
    if len(parts) >= 2:
        return (parts[0][0] + parts[1][0]).upper()
    return name.strip()[:2].upper()


class UserProfile(TimestampedModel):
    """Denormalized profile kept next to the Supabase auth identity."""

    id: UUID
    email: str = ""
    name: str = ""
    initials: str = ""

    @classmethod
    def from_identity(cls, *, user_id: UUID, email: str | None, name: str | None) -> UserProfile:
        email = email or ""
        name = (name or "").strip()
        return cls(
            id=user_id,
            email=email,
            name=name,
            initials=get_initials(name or email),
        )
