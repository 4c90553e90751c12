from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import TYPE_CHECKING, Any

from transom.core.content import is_empty
from transom.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from transom.core.services.note_service import NoteService


logger = get_logger(__name__)


class SaveState(str, Enum):
    SAVED = "saved"
    PENDING = "pending"
    SAVING = "saving"
    UNSAVED = "unsaved"


class DraftSession:
    """Debounced writer for one note being edited.

    Every change restarts a quiet-period timer; when it elapses the merged
    changes go out in a single update. Saves are serialized by a lock and run
    in their own task, so a restarted timer never interrupts a write.
    A failed save keeps its changes for the next one and marks the session
    ``unsaved``. Nothing is retried automatically.
    """

    def __init__(
        self,
        note_id: UUID,
        user_id: UUID,
        service: NoteService,
        *,
        quiet_period: float,
        content: str | None = None,
    ) -> None:
        self.note_id = note_id
        self.user_id = user_id
        self.service = service
        self.quiet_period = quiet_period
        self.content = content
        self.state = SaveState.SAVED

        self._pending: dict[str, Any] = {}
        self._timer: asyncio.Task | None = None
        self._saves: set[asyncio.Task] = set()
        self._lock = asyncio.Lock()
        self._last_written: str | None = None
        self.last_activity = time.monotonic()

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending)

    def is_idle(self, idle_for: float, now: float | None = None) -> bool:
        """True once everything is written and nothing happened for ``idle_for`` seconds."""
        if self._pending or self.state is not SaveState.SAVED:
            return False
        if (self._timer and not self._timer.done()) or self._saves:
            return False
        now = time.monotonic() if now is None else now
        return now - self.last_activity >= idle_for

    def update(self, *, content: str | None = None, tags: Iterable[str] | None = None) -> SaveState:
        """Record a local change and restart the quiet-period timer."""
        if content is not None:
            self._pending["content"] = content
            self.content = content
        if tags is not None:
            self._pending["tags"] = list(tags)
        if not self._pending:
            return self.state

        self.cancel_timer()
        self.last_activity = time.monotonic()
        self._timer = asyncio.create_task(self._save_when_quiet())
        self.state = SaveState.PENDING
        return self.state

    async def _save_when_quiet(self) -> None:
        await asyncio.sleep(self.quiet_period)
        task = asyncio.create_task(self.flush())
        self._saves.add(task)
        task.add_done_callback(self._saves.discard)

    async def flush(self) -> SaveState:
        """Write pending changes now. Safe to call at any time."""
        async with self._lock:
            return await self._write_pending()

    async def _write_pending(self) -> SaveState:
        if not self._pending:
            return self.state

        changes, self._pending = self._pending, {}
        self.state = SaveState.SAVING
        try:
            note = await self.service.apply_changes(self.note_id, changes, self.user_id)
        except Exception as err:
            logger.error(
                "Autosave failed",
                extra={"note_id": str(self.note_id), "user_id": str(self.user_id), "error": str(err)},
            )
            # Newer edits made during the failed save take precedence
            self._pending = {**changes, **self._pending}
            self.state = SaveState.UNSAVED
            return self.state

        if note is None:
            logger.warning("Autosave target is gone", extra={"note_id": str(self.note_id)})
            self._pending = {**changes, **self._pending}
            self.state = SaveState.UNSAVED
            return self.state

        self._last_written = note.content
        self.last_activity = time.monotonic()
        self.state = SaveState.PENDING if self._pending else SaveState.SAVED
        logger.debug("Autosaved", extra={"note_id": str(self.note_id), "fields": sorted(changes)})
        return self.state

    def accept_external(self, content: str) -> bool:
        """Adopt content pushed from the store unless it would clobber local work.

        Returns False for the echo of our own last write and while local
        changes are unsaved or being written.
        """
        if self._pending or self.state is SaveState.SAVING:
            return False
        if self._last_written is not None and content == self._last_written:
            return False
        self.content = content
        self._last_written = content
        return True

    def cancel_timer(self) -> None:
        if self._timer and not self._timer.done():
            self._timer.cancel()

    async def close(self) -> bool:
        """End the editing session. Returns True when the empty note was deleted."""
        self.cancel_timer()
        if self._saves:
            await asyncio.gather(*list(self._saves))

        async with self._lock:
            if self.content is None:
                deleted = await self.service.delete_if_empty(self.note_id, self.user_id)
            elif is_empty(self.content):
                self._pending.clear()
                deleted = await self.service.delete_note(self.note_id, self.user_id)
            else:
                await self._write_pending()
                return False

        if deleted:
            logger.info("Deleted empty thought on close", extra={"note_id": str(self.note_id)})
        return deleted


class AutosaveController:
    """Owns the open draft sessions, keyed by user and note.

    Sessions the client never closed are dropped once they are saved and
    idle for ``idle_timeout`` seconds.
    """

    def __init__(self, quiet_period: float, idle_timeout: float = 600.0) -> None:
        self.quiet_period = quiet_period
        self.idle_timeout = idle_timeout
        self._sessions: dict[tuple[UUID, UUID], DraftSession] = {}

    def get(self, user_id: UUID, note_id: UUID) -> DraftSession | None:
        return self._sessions.get((user_id, note_id))

    def session(
        self,
        user_id: UUID,
        note_id: UUID,
        service: NoteService,
        *,
        content: str | None = None,
    ) -> DraftSession:
        """Return the open session for the note, opening one if needed.

        Services are request scoped, so the latest one replaces the old binding.
        """
        self.prune()
        key = (user_id, note_id)
        draft = self._sessions.get(key)
        if draft is None:
            draft = DraftSession(note_id, user_id, service, quiet_period=self.quiet_period, content=content)
            self._sessions[key] = draft
        else:
            draft.service = service
        return draft

    def prune(self, now: float | None = None) -> int:
        """Drop idle sessions. Returns how many were removed."""
        idle = [key for key, draft in self._sessions.items() if draft.is_idle(self.idle_timeout, now)]
        for key in idle:
            del self._sessions[key]
        if idle:
            logger.debug("Dropped idle drafts", extra={"count": len(idle)})
        return len(idle)

    def status(self, user_id: UUID, note_id: UUID) -> SaveState:
        draft = self.get(user_id, note_id)
        return draft.state if draft else SaveState.SAVED

    async def close(self, user_id: UUID, note_id: UUID, service: NoteService) -> bool:
        draft = self._sessions.pop((user_id, note_id), None)
        if draft is None:
            draft = DraftSession(note_id, user_id, service, quiet_period=self.quiet_period)
        else:
            draft.service = service
        return await draft.close()

    async def flush_all(self) -> None:
        """Write every pending draft, used on shutdown."""
        for draft in list(self._sessions.values()):
            draft.cancel_timer()
            await draft.flush()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
