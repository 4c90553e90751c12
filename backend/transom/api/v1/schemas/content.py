from __future__ import annotations

from pydantic import Field

from transom.core.models.base import AppBaseModel


class ContentPayload(AppBaseModel):
    """Content in either representation; plain text is accepted too."""

    content: str = Field(default="", max_length=200_000)


class PreviewRequest(ContentPayload):
    limit: int | None = Field(default=None, ge=1, le=2000)


class ContentResult(AppBaseModel):
    content: str
    is_empty: bool


class PreviewResult(AppBaseModel):
    preview: str
    text: str
