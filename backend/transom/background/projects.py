from __future__ import annotations

from typing import TYPE_CHECKING

from transom.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from uuid import UUID

    from transom.core.services.project_service import ProjectService


async def refresh_project_note_count(*, service: ProjectService, project_id: UUID, user_id: UUID) -> None:
    """Recount a project's active thoughts after a note change.

    Runs after the response is sent; a stale count is corrected by the next
    refresh, so failures are only logged.
    """
    try:
        project = await service.refresh_note_count(project_id, user_id)
    except Exception as err:  # pragma: no cover - network/db errors
        logger.error("Project count refresh failed for %s: %s", project_id, err)
        return
    if project is not None:
        logger.debug("Project %s holds %d thoughts", project_id, project.note_count)
