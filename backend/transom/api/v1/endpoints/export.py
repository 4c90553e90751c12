from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TCH003

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from transom.core.schemas.note_filter import ArchiveState, NoteFilter
from transom.core.services.export_service import ExportFormat
from transom.dependencies import get_current_user, get_export_service

if TYPE_CHECKING:
    from transom.core.schemas.auth import AuthUser
    from transom.core.services.export_service import ExportService

router = APIRouter()


@router.get("/")
async def export_notes(
    format: ExportFormat = ExportFormat.CSV,  # noqa: A002
    archive: ArchiveState | None = None,
    q: str | None = Query(default=None, max_length=500),
    tag: list[str] | None = Query(default=None),
    project_id: UUID | None = None,
    current_user: AuthUser = Depends(get_current_user),
    service: ExportService = Depends(get_export_service),
):
    """Download the user's thoughts as a CSV, plain text or JSON file.

    Without filters CSV and text hold the active thoughts and JSON is a full backup.
    """
    flt = None
    if archive is not None or q or tag or project_id is not None:
        flt = NoteFilter(
            query=q,
            tag_ids=tag or [],
            archive=archive or ArchiveState.ACTIVE,
            project_id=project_id,
        )

    export = await service.export(current_user, format, flt)
    return Response(
        content=export.body,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
