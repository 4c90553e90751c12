from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


class AppBaseModel(PydanticBaseModel):
    """Base model for request/response schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        extra="forbid",
        populate_by_name=True,
    )


class RowModel(AppBaseModel):
    """Base model for entities mirrored from Supabase rows.

    The mobile app shares these tables and may add columns the web client
    does not know about, so unknown keys are dropped instead of rejected.
    """

    model_config = ConfigDict(extra="ignore")


class TimestampedModel(RowModel):
    """Base model with timestamp fields."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime | None = None

    @property
    def last_modified(self) -> datetime:
        return self.updated_at or self.created_at
