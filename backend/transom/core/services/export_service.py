from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

from transom.config import settings
from transom.core.content import extract_text
from transom.core.models.base import utc_now
from transom.core.schemas.note_filter import ArchiveState, NoteFilter
from transom.core.services.search_service import filter_notes
from transom.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from transom.core.models.note import Note
    from transom.core.repositories.note_repository import NoteRepository
    from transom.core.repositories.project_repository import ProjectRepository
    from transom.core.repositories.tag_repository import TagRepository
    from transom.core.schemas.auth import AuthUser


logger = get_logger(__name__)

CSV_COLUMNS = ["id", "created_at", "updated_at", "archived", "project", "tags", "content"]
TEXT_SEPARATOR = "\n\n---\n\n"


class ExportFormat(str, Enum):
    CSV = "csv"
    TEXT = "txt"
    JSON = "json"


_MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.TEXT: "text/plain",
    ExportFormat.JSON: "application/json",
}


@dataclass(frozen=True)
class ExportFile:
    filename: str
    media_type: str
    body: str


def export_filename(fmt: ExportFormat, day: date | None = None) -> str:
    """``transom-export-YYYY-MM-DD.<ext>`` with the configured prefix."""
    day = day or utc_now().date()
    return f"{settings.export_filename_prefix}-{day.isoformat()}.{fmt.value}"


def _tag_names(note: Note, tag_names: Mapping[str, str]) -> list[str]:
    # Unknown ids are kept so nothing silently disappears from an export
    return [tag_names.get(t.lower(), t) for t in note.tags]


def render_csv(notes: Sequence[Note], tag_names: Mapping[str, str], project_names: Mapping[str, str]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for note in notes:
        writer.writerow({
            "id": str(note.id),
            "created_at": note.created_at.isoformat(),
            "updated_at": note.updated_at.isoformat() if note.updated_at else "",
            "archived": "yes" if note.is_archived else "no",
            "project": project_names.get(str(note.project_id), "") if note.project_id else "",
            "tags": "; ".join(_tag_names(note, tag_names)),
            "content": extract_text(note.content),
        })
    return buffer.getvalue()


def render_text(notes: Sequence[Note], tag_names: Mapping[str, str]) -> str:
    """Plain text export: each thought's visible text with a small header."""
    entries = []
    for note in notes:
        header = note.last_modified.strftime("%Y-%m-%d %H:%M")
        names = _tag_names(note, tag_names)
        if names:
            header += " [" + ", ".join(names) + "]"
        entries.append(f"{header}\n\n{extract_text(note.content).strip()}")
    return TEXT_SEPARATOR.join(entries) + ("\n" if entries else "")


def render_json(notes: Sequence[Note], user_email: str | None) -> str:
    """Full backup in the shape the preferences panel produces."""
    data = {
        "thoughts": [n.model_dump(mode="json") for n in notes if not n.is_archived],
        "archivedThoughts": [n.model_dump(mode="json") for n in notes if n.is_archived],
        "exportDate": utc_now().isoformat(),
        "user": user_email,
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


class ExportService:
    """Builds one-shot downloads of the user's thoughts."""

    def __init__(self, notes: NoteRepository, tags: TagRepository, projects: ProjectRepository) -> None:
        self._notes = notes
        self._tags = tags
        self._projects = projects

    async def export(
        self,
        user: AuthUser,
        fmt: ExportFormat,
        flt: NoteFilter | None = None,
        *,
        day: date | None = None,
    ) -> ExportFile:
        """Export the filtered note set.

        Without a filter CSV and text cover the active thoughts while JSON is a
        full backup including the archive.
        """
        if flt is None:
            flt = NoteFilter(archive=ArchiveState.ALL if fmt is ExportFormat.JSON else ArchiveState.ACTIVE)

        user_id: UUID = user.id
        notes = filter_notes(await self._notes.list(user_id=user_id), flt)

        if fmt is ExportFormat.JSON:
            body = render_json(notes, user.email)
        else:
            tag_names = {str(t.id).lower(): t.name for t in await self._tags.list(user_id=user_id)}
            if fmt is ExportFormat.CSV:
                project_names = {str(p.id): p.name for p in await self._projects.list(user_id=user_id)}
                body = render_csv(notes, tag_names, project_names)
            else:
                body = render_text(notes, tag_names)

        logger.info(
            "Export generated",
            extra={"user_id": str(user_id), "format": fmt.value, "note_count": len(notes)},
        )
        return ExportFile(filename=export_filename(fmt, day), media_type=_MEDIA_TYPES[fmt], body=body)
