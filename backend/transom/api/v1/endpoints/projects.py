from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TCH003

from fastapi import APIRouter, Depends, HTTPException, status

from transom.api.v1.schemas.note import NoteRead
from transom.api.v1.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate
from transom.core.schemas.note_filter import ArchiveState, NoteFilter
from transom.dependencies import get_current_user, get_project_service, get_search_service

if TYPE_CHECKING:
    from transom.core.schemas.auth import AuthUser
    from transom.core.services.project_service import ProjectService
    from transom.core.services.search_service import SearchService

router = APIRouter()


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    current_user: AuthUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    project = await service.create_project(payload, user_id=current_user.id)
    return ProjectRead.model_validate(project)


@router.get("/", response_model=list[ProjectRead])
async def list_projects(
    current_user: AuthUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    projects = await service.list_projects(current_user.id)
    return [ProjectRead.model_validate(p) for p in projects]


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    project = await service.get_project(project_id, current_user.id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return ProjectRead.model_validate(project)


@router.get("/{project_id}/notes", response_model=list[NoteRead])
async def list_project_notes(
    project_id: UUID,
    archive: ArchiveState = ArchiveState.ACTIVE,
    current_user: AuthUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
    search: SearchService = Depends(get_search_service),
):
    project = await service.get_project(project_id, current_user.id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    notes = await search.search_notes(
        user_id=current_user.id,
        flt=NoteFilter(project_id=project.id, archive=archive),
    )
    return [NoteRead.model_validate(n) for n in notes]


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    current_user: AuthUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    try:
        project = await service.update_project(project_id, payload, current_user.id)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return ProjectRead.model_validate(project)


@router.post("/{project_id}/refresh-count", response_model=ProjectRead)
async def refresh_project_count(
    project_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    project = await service.refresh_note_count(project_id, current_user.id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return ProjectRead.model_validate(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    """Delete a project and the thoughts filed under it."""
    deleted = await service.delete_project(project_id, current_user.id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Project not found")
    return None
