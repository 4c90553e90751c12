from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from transom.core.content import extract_text
from transom.core.schemas.note_filter import ArchiveState, NoteFilter, NoteSort

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from transom.core.models.note import Note
    from transom.core.repositories.note_repository import NoteRepository


def _as_utc(value: datetime) -> datetime:
    # Query strings usually arrive without an offset
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _matches_archive(note: Note, state: ArchiveState) -> bool:
    if state is ArchiveState.ALL:
        return True
    return note.is_archived == (state is ArchiveState.ARCHIVED)


def _matches_tags(note: Note, tag_ids: Sequence[str], match_all: bool) -> bool:
    if not tag_ids:
        return True
    owned = {t.lower() for t in note.tags}
    wanted = [t.lower() for t in tag_ids]
    if match_all:
        return all(t in owned for t in wanted)
    return any(t in owned for t in wanted)


def filter_notes(notes: Iterable[Note], flt: NoteFilter) -> list[Note]:
    """Apply a filter to an in-memory note collection.

    Text matching is case-insensitive over the visible text of the note, so
    markup and the dialect stylesheet never produce hits.
    """
    query = (flt.query or "").strip().casefold()
    updated_from = _as_utc(flt.updated_from) if flt.updated_from else None
    updated_to = _as_utc(flt.updated_to) if flt.updated_to else None

    selected: list[tuple[Note, str]] = []
    for note in notes:
        if not _matches_archive(note, flt.archive):
            continue
        if flt.project_id is not None and note.project_id != flt.project_id:
            continue
        if not _matches_tags(note, flt.tag_ids, flt.match_all_tags):
            continue

        modified = _as_utc(note.last_modified)
        if updated_from and modified < updated_from:
            continue
        if updated_to and modified > updated_to:
            continue

        text = extract_text(note.content)
        if query and query not in text.casefold():
            continue
        selected.append((note, text))

    if flt.sort is NoteSort.ALPHABETICAL:
        selected.sort(key=lambda pair: pair[1].strip().casefold())
    elif flt.sort is NoteSort.CREATED:
        selected.sort(key=lambda pair: _as_utc(pair[0].created_at), reverse=True)
    else:
        selected.sort(key=lambda pair: _as_utc(pair[0].last_modified), reverse=True)

    result = [note for note, _ in selected]
    if flt.limit is not None:
        result = result[: flt.limit]
    return result


class SearchService:
    """Service for searching notes.

    The full collection is fetched and filtered in process; PostgREST is only
    asked for the user's rows.
    """

    def __init__(self, repo: NoteRepository) -> None:
        self._repo = repo

    async def search_notes(self, *, user_id: UUID, flt: NoteFilter | None = None) -> Sequence[Note]:
        notes = await self._repo.list(user_id=user_id)
        return filter_notes(notes, flt or NoteFilter())
