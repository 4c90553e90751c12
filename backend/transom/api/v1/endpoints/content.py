from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends

from transom.api.v1.schemas.content import ContentPayload, ContentResult, PreviewRequest, PreviewResult
from transom.config import settings
from transom.core.content import decode, encode, extract_text, is_empty, preview
from transom.dependencies import get_current_user

if TYPE_CHECKING:
    from transom.core.schemas.auth import AuthUser

router = APIRouter()


@router.post("/decode", response_model=ContentResult)
async def decode_content(
    payload: ContentPayload,
    current_user: AuthUser = Depends(get_current_user),
):
    """Convert stored dialect content into the editor's fragment."""
    return ContentResult(content=decode(payload.content), is_empty=is_empty(payload.content))


@router.post("/encode", response_model=ContentResult)
async def encode_content(
    payload: ContentPayload,
    current_user: AuthUser = Depends(get_current_user),
):
    """Convert editor content into the dialect document the mobile app reads."""
    return ContentResult(content=encode(payload.content), is_empty=is_empty(payload.content))


@router.post("/preview", response_model=PreviewResult)
async def preview_content(
    payload: PreviewRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    limit = payload.limit or settings.preview_length
    return PreviewResult(preview=preview(payload.content, limit), text=extract_text(payload.content))
