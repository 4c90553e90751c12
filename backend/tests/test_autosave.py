import asyncio
import time
import unittest
from uuid import uuid4

from fakes import InMemoryNoteRepository, make_note

from transom.background.autosave import AutosaveController, DraftSession, SaveState
from transom.core.content import encode, extract_text
from transom.core.services.note_service import NoteService

QUIET = 0.05


class AutosaveTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.user_id = uuid4()
        self.repo = InMemoryNoteRepository()
        self.service = NoteService(self.repo)
        self.note = await self.repo.create(make_note(self.user_id))

    def open_session(self):
        return DraftSession(self.note.id, self.user_id, self.service, quiet_period=QUIET, content=self.note.content)

    async def wait_for_quiet(self):
        await asyncio.sleep(QUIET * 4)


class TestDebounce(AutosaveTestCase):
    async def test_burst_of_changes_is_saved_once_with_latest_content(self):
        draft = self.open_session()
        for text in ["d", "dr", "dra", "draf", "draft"]:
            self.assertEqual(draft.update(content=f"<p>{text}</p>"), SaveState.PENDING)
            await asyncio.sleep(QUIET / 5)

        await self.wait_for_quiet()

        self.assertEqual(len(self.repo.updates), 1)
        _, changes = self.repo.updates[0]
        self.assertEqual(extract_text(changes["content"]), "draft")
        self.assertEqual(draft.state, SaveState.SAVED)

    async def test_content_and_tags_are_merged_into_one_save(self):
        draft = self.open_session()
        draft.update(content="<p>tagged</p>")
        draft.update(tags=["a", "b", "a"])

        await self.wait_for_quiet()

        self.assertEqual(len(self.repo.updates), 1)
        _, changes = self.repo.updates[0]
        self.assertEqual(changes["tags"], ["a", "b"])
        self.assertEqual(self.repo.rows[self.note.id].tags, ["a", "b"])

    async def test_failed_save_keeps_changes_and_marks_unsaved(self):
        self.repo.fail_updates = 1
        draft = self.open_session()
        draft.update(content="<p>keep me</p>")

        await self.wait_for_quiet()

        self.assertEqual(draft.state, SaveState.UNSAVED)
        self.assertTrue(draft.has_pending_changes)
        self.assertEqual(len(self.repo.updates), 1)

        self.assertEqual(await draft.flush(), SaveState.SAVED)
        self.assertEqual(extract_text(self.repo.rows[self.note.id].content), "keep me")

    async def test_flush_without_changes_does_not_write(self):
        draft = self.open_session()
        self.assertEqual(await draft.flush(), SaveState.SAVED)
        self.assertEqual(self.repo.updates, [])


class TestEchoSuppression(AutosaveTestCase):
    async def test_own_write_is_ignored_and_foreign_content_adopted(self):
        draft = self.open_session()
        draft.update(content="<p>mine</p>")
        await draft.flush()

        stored = self.repo.rows[self.note.id].content
        self.assertFalse(draft.accept_external(stored))

        remote = encode("edited on the phone")
        self.assertTrue(draft.accept_external(remote))
        self.assertEqual(draft.content, remote)

    async def test_pending_changes_are_not_overwritten(self):
        draft = self.open_session()
        draft.update(content="<p>typing</p>")
        self.assertFalse(draft.accept_external(encode("remote")))
        self.assertEqual(draft.content, "<p>typing</p>")
        draft.cancel_timer()


class TestClose(AutosaveTestCase):
    async def test_closing_an_empty_note_deletes_it(self):
        draft = self.open_session()
        draft.update(content="<p>x</p>")
        draft.update(content="<p></p>")

        self.assertTrue(await draft.close())
        self.assertNotIn(self.note.id, self.repo.rows)
        self.assertEqual(self.repo.updates, [])

    async def test_closing_flushes_pending_changes(self):
        draft = self.open_session()
        draft.update(content="<p>almost lost</p>")

        self.assertFalse(await draft.close())
        self.assertEqual(extract_text(self.repo.rows[self.note.id].content), "almost lost")

        await self.wait_for_quiet()
        self.assertEqual(len(self.repo.updates), 1)

    async def test_closing_without_session_checks_stored_content(self):
        controller = AutosaveController(quiet_period=QUIET)
        self.assertTrue(await controller.close(self.user_id, self.note.id, self.service))
        self.assertNotIn(self.note.id, self.repo.rows)


class TestController(AutosaveTestCase):
    async def test_sessions_are_reused_and_rebound(self):
        controller = AutosaveController(quiet_period=QUIET)
        first = controller.session(self.user_id, self.note.id, self.service)
        other_service = NoteService(self.repo)
        second = controller.session(self.user_id, self.note.id, other_service)

        self.assertIs(first, second)
        self.assertIs(second.service, other_service)
        self.assertEqual(len(controller), 1)

    async def test_status_and_flush_all(self):
        controller = AutosaveController(quiet_period=10)
        draft = controller.session(self.user_id, self.note.id, self.service, content=self.note.content)
        draft.update(content="<p>shutdown</p>")
        self.assertEqual(controller.status(self.user_id, self.note.id), SaveState.PENDING)

        await controller.flush_all()

        self.assertEqual(len(controller), 0)
        self.assertEqual(controller.status(self.user_id, self.note.id), SaveState.SAVED)
        self.assertEqual(extract_text(self.repo.rows[self.note.id].content), "shutdown")

    async def test_saved_sessions_are_dropped_after_idle_timeout(self):
        controller = AutosaveController(quiet_period=QUIET, idle_timeout=60)
        notes = [await self.repo.create(make_note(self.user_id)) for _ in range(5)]
        for note in notes:
            controller.session(self.user_id, note.id, self.service, content=note.content).update(content="<p>typed</p>")
        await self.wait_for_quiet()

        self.assertTrue(all(controller.status(self.user_id, n.id) is SaveState.SAVED for n in notes))
        self.assertEqual(controller.prune(), 0)
        self.assertEqual(controller.prune(now=time.monotonic() + 61), 5)
        self.assertEqual(len(controller), 0)

    async def test_opening_a_session_sweeps_abandoned_ones(self):
        controller = AutosaveController(quiet_period=QUIET, idle_timeout=0)
        abandoned = [await self.repo.create(make_note(self.user_id)) for _ in range(3)]
        for note in abandoned:
            controller.session(self.user_id, note.id, self.service, content=note.content).update(content="<p>left</p>")
        await self.wait_for_quiet()

        controller.session(self.user_id, self.note.id, self.service, content=self.note.content)

        self.assertEqual(len(controller), 1)
        self.assertIsNotNone(controller.get(self.user_id, self.note.id))

    async def test_unsaved_work_is_never_dropped(self):
        controller = AutosaveController(quiet_period=10, idle_timeout=0)
        draft = controller.session(self.user_id, self.note.id, self.service, content=self.note.content)
        draft.update(content="<p>pending</p>")

        self.assertEqual(controller.prune(now=time.monotonic() + 3600), 0)
        self.assertIs(controller.get(self.user_id, self.note.id), draft)
        draft.cancel_timer()


if __name__ == "__main__":
    unittest.main()
