from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TCH003

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from transom.api.v1.schemas.note import (
    DirectionRepair,
    DraftStatus,
    DraftUpdate,
    NoteCreate,
    NoteEditable,
    NoteRead,
    NoteUpdate,
    TagAssignment,
)
from transom.background import SaveState, refresh_project_note_count
from transom.core.content import decode
from transom.core.schemas.note_filter import ArchiveState, NoteFilter, NoteSort
from transom.dependencies import (
    get_autosave_controller,
    get_current_user,
    get_note_service,
    get_project_service,
    get_search_service,
)

if TYPE_CHECKING:
    from transom.background.autosave import AutosaveController
    from transom.core.models.note import Note
    from transom.core.schemas.auth import AuthUser
    from transom.core.services.note_service import NoteService
    from transom.core.services.project_service import ProjectService
    from transom.core.services.search_service import SearchService

router = APIRouter()


def note_filter_params(
    q: str | None = Query(default=None, max_length=500, description="Text to look for in the visible text"),
    tag: list[str] | None = Query(default=None, description="Tag ids; repeat for several"),
    match_all_tags: bool = False,
    archive: ArchiveState = ArchiveState.ACTIVE,
    project_id: UUID | None = None,
    updated_from: datetime | None = None,
    updated_to: datetime | None = None,
    sort: NoteSort = NoteSort.UPDATED,
    limit: int | None = Query(default=None, ge=1, le=1000),
) -> NoteFilter:
    return NoteFilter(
        query=q,
        tag_ids=tag or [],
        match_all_tags=match_all_tags,
        archive=archive,
        project_id=project_id,
        updated_from=updated_from,
        updated_to=updated_to,
        sort=sort,
        limit=limit,
    )


def _schedule_count_refresh(
    background_tasks: BackgroundTasks,
    projects: ProjectService,
    user_id: UUID,
    *notes: Note | None,
) -> None:
    project_ids = {n.project_id for n in notes if n is not None and n.project_id is not None}
    for project_id in project_ids:
        background_tasks.add_task(
            refresh_project_note_count,
            service=projects,
            project_id=project_id,
            user_id=user_id,
        )


@router.post("/", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def create_note(
    payload: NoteCreate,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
    projects: ProjectService = Depends(get_project_service),
):
    note = await service.create_note(payload, user_id=current_user.id)
    _schedule_count_refresh(background_tasks, projects, current_user.id, note)
    return NoteRead.model_validate(note)


@router.get("/", response_model=list[NoteRead])
async def list_notes(
    flt: NoteFilter = Depends(note_filter_params),
    current_user: AuthUser = Depends(get_current_user),
    service: SearchService = Depends(get_search_service),
):
    """List the user's thoughts. Active thoughts, most recently edited first, unless filtered otherwise."""
    notes = await service.search_notes(user_id=current_user.id, flt=flt)
    return [NoteRead.model_validate(n) for n in notes]


@router.get("/{note_id}", response_model=NoteRead)
async def get_note(
    note_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    note = await service.get_note(note_id, user_id=current_user.id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return NoteRead.model_validate(note)


@router.get("/{note_id}/editable", response_model=NoteEditable)
async def get_editable_note(
    note_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
    autosave: AutosaveController = Depends(get_autosave_controller),
):
    """The note with its content converted for the web editor.

    While a draft is open its unsaved local content wins over the stored copy.
    """
    result = await service.get_editable_content(note_id, user_id=current_user.id)
    if not result:
        raise HTTPException(status_code=404, detail="Note not found")
    note, content = result

    draft = autosave.get(current_user.id, note.id)
    if draft is not None and not draft.accept_external(note.content) and draft.content is not None:
        content = decode(draft.content)

    return NoteEditable(
        id=note.id,
        content=content,
        tags=note.tags,
        project_id=note.project_id,
        is_archived=note.is_archived,
        updated_at=note.updated_at,
    )


@router.patch("/{note_id}", response_model=NoteRead)
async def update_note(
    note_id: UUID,
    payload: NoteUpdate,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
    projects: ProjectService = Depends(get_project_service),
):
    before = await service.get_note(note_id, user_id=current_user.id)
    if not before:
        raise HTTPException(status_code=404, detail="Note not found")
    note = await service.update_note(note_id, payload, user_id=current_user.id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    _schedule_count_refresh(background_tasks, projects, current_user.id, before, note)
    return NoteRead.model_validate(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
    projects: ProjectService = Depends(get_project_service),
):
    note = await service.get_note(note_id, user_id=current_user.id)
    deleted = await service.delete_note(note_id, user_id=current_user.id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Note not found")
    _schedule_count_refresh(background_tasks, projects, current_user.id, note)
    return None


@router.post("/{note_id}/archive", response_model=NoteRead)
async def archive_note(
    note_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
    projects: ProjectService = Depends(get_project_service),
):
    note = await service.archive_note(note_id, user_id=current_user.id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    _schedule_count_refresh(background_tasks, projects, current_user.id, note)
    return NoteRead.model_validate(note)


@router.post("/{note_id}/unarchive", response_model=NoteRead)
async def unarchive_note(
    note_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
    projects: ProjectService = Depends(get_project_service),
):
    note = await service.unarchive_note(note_id, user_id=current_user.id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    _schedule_count_refresh(background_tasks, projects, current_user.id, note)
    return NoteRead.model_validate(note)


@router.post("/{note_id}/tags", response_model=NoteRead)
async def add_tag(
    note_id: UUID,
    payload: TagAssignment,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    """Apply a tag by name, creating it on first use."""
    try:
        result = await service.add_tag(note_id, payload.name, user_id=current_user.id)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    if not result:
        raise HTTPException(status_code=404, detail="Note not found")
    note, _ = result
    return NoteRead.model_validate(note)


@router.delete("/{note_id}/tags/{tag_id}", response_model=NoteRead)
async def remove_tag(
    note_id: UUID,
    tag_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    note = await service.remove_tag(note_id, tag_id, user_id=current_user.id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return NoteRead.model_validate(note)


@router.put("/{note_id}/draft", response_model=DraftStatus)
async def update_draft(
    note_id: UUID,
    payload: DraftUpdate,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
    autosave: AutosaveController = Depends(get_autosave_controller),
):
    """Record an editor change; it is written once the user pauses typing."""
    note = await service.get_note(note_id, user_id=current_user.id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    draft = autosave.session(current_user.id, note.id, service, content=note.content)
    state = draft.update(content=payload.content, tags=payload.tags)
    return DraftStatus(note_id=note.id, state=state.value)


@router.get("/{note_id}/draft", response_model=DraftStatus)
async def get_draft_status(
    note_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    autosave: AutosaveController = Depends(get_autosave_controller),
):
    return DraftStatus(note_id=note_id, state=autosave.status(current_user.id, note_id).value)


@router.post("/{note_id}/close", response_model=DraftStatus)
async def close_note(
    note_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
    projects: ProjectService = Depends(get_project_service),
    autosave: AutosaveController = Depends(get_autosave_controller),
):
    """Leave the editor: flush the draft, or delete the thought if nothing was written."""
    note = await service.get_note(note_id, user_id=current_user.id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    draft = autosave.get(current_user.id, note.id)
    deleted = await autosave.close(current_user.id, note.id, service)
    if deleted:
        _schedule_count_refresh(background_tasks, projects, current_user.id, note)
    state = draft.state if draft is not None else SaveState.SAVED
    return DraftStatus(note_id=note.id, state=state.value, deleted=deleted)


@router.post("/{note_id}/repair-direction", response_model=DirectionRepair)
async def repair_direction(
    note_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    """Restore a thought whose characters were saved in reverse order."""
    result = await service.repair_direction(note_id, user_id=current_user.id)
    if not result:
        raise HTTPException(status_code=404, detail="Note not found")
    note, repaired = result
    return DirectionRepair(repaired=repaired, note=NoteRead.model_validate(note))
