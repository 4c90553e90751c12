from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TCH003

from fastapi import APIRouter, Depends, HTTPException, status

from transom.api.v1.schemas.tag import TagCreate, TagDeleted, TagRead, TagUpdate
from transom.core.schemas.tag_summary import TagSummary
from transom.dependencies import get_current_user, get_note_service, get_tag_service
from transom.utils.logging import get_logger

if TYPE_CHECKING:
    from transom.core.schemas.auth import AuthUser
    from transom.core.services.note_service import NoteService
    from transom.core.services.tag_service import TagService

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", response_model=list[TagSummary])
async def list_tags(
    projects: bool | None = None,
    current_user: AuthUser = Depends(get_current_user),
    tags: TagService = Depends(get_tag_service),
    notes: NoteService = Depends(get_note_service),
):
    """Tags with the number of active thoughts using them, most used first.

    ``projects=true`` limits the list to project tags, ``projects=false`` to plain tags.
    """
    summaries = await tags.summaries(current_user.id, await notes.list_notes(current_user.id))
    if projects is None:
        return summaries
    return [s for s in summaries if s.is_project == projects]


@router.post("/", response_model=TagRead, status_code=status.HTTP_201_CREATED)
async def create_tag(
    payload: TagCreate,
    current_user: AuthUser = Depends(get_current_user),
    tags: TagService = Depends(get_tag_service),
):
    """Create a tag, or return the existing one with the same name."""
    try:
        tag = await tags.resolve_or_create(payload.name, current_user.id, is_project=payload.is_project)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    return TagRead.model_validate(tag)


@router.patch("/{tag_id}", response_model=TagRead)
async def update_tag(
    tag_id: UUID,
    payload: TagUpdate,
    current_user: AuthUser = Depends(get_current_user),
    tags: TagService = Depends(get_tag_service),
):
    try:
        tag = await tags.update_tag(tag_id, current_user.id, name=payload.name, is_project=payload.is_project)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(err)) from err
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return TagRead.model_validate(tag)


@router.delete("/{tag_id}", response_model=TagDeleted)
async def delete_tag(
    tag_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    tags: TagService = Depends(get_tag_service),
    notes: NoteService = Depends(get_note_service),
):
    """Delete a tag and remove it from every thought that carries it."""
    tag = await tags.get_tag(tag_id, current_user.id)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    detached = await notes.detach_tag(tag.id, current_user.id)
    await tags.delete_tag(tag.id, current_user.id)
    logger.info("Tag deleted", extra={"tag_id": str(tag.id), "detached_from": detached})
    return TagDeleted(id=tag.id, detached_from=detached)
