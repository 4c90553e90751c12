import unittest
from types import SimpleNamespace
from uuid import uuid4

from fakes import InMemoryNoteRepository, InMemoryTagRepository, make_note

from transom.core.content import encode, extract_text, is_dialect_document
from transom.core.content.dialect import EMPTY_DOCUMENT
from transom.core.services.note_service import NoteService
from transom.core.services.tag_service import TagService


class NoteServiceTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.user_id = uuid4()
        self.notes = InMemoryNoteRepository()
        self.tags = InMemoryTagRepository()
        self.service = NoteService(self.notes, TagService(self.tags))


class TestCreateAndUpdate(NoteServiceTestCase):
    async def test_new_note_holds_canonical_empty_document(self):
        note = await self.service.create_note(SimpleNamespace(content=None), self.user_id)
        self.assertEqual(note.content, EMPTY_DOCUMENT)
        self.assertFalse(note.is_archived)

    async def test_editor_content_is_stored_as_dialect(self):
        note = await self.service.create_note(SimpleNamespace(content="<p><em>hi</em></p>"), self.user_id)
        self.assertTrue(is_dialect_document(note.content))
        self.assertIn('<span class="s3">hi</span>', note.content)

        updated = await self.service.apply_changes(note.id, {"content": "<p>bye</p>", "user_id": uuid4()}, self.user_id)
        self.assertEqual(extract_text(updated.content), "bye")
        self.assertEqual(updated.user_id, self.user_id)

    async def test_editable_content_is_decoded(self):
        note = await self.notes.create(make_note(self.user_id, encode("<p><strong>bold</strong></p>")))
        _, editable = await self.service.get_editable_content(note.id, self.user_id)
        self.assertEqual(editable, "<p><strong>bold</strong></p>")

    async def test_foreign_notes_are_invisible(self):
        note = await self.notes.create(make_note(uuid4(), encode("theirs")))
        self.assertIsNone(await self.service.get_note(note.id, self.user_id))
        self.assertIsNone(await self.service.archive_note(note.id, self.user_id))
        self.assertFalse(await self.service.delete_note(note.id, self.user_id))
        self.assertIsNone(await self.service.get_note("not-a-uuid", self.user_id))


class TestArchive(NoteServiceTestCase):
    async def test_archive_round_trip_keeps_content(self):
        note = await self.notes.create(make_note(self.user_id, encode("keep this")))

        archived = await self.service.archive_note(note.id, self.user_id)
        self.assertTrue(archived.is_archived)

        restored = await self.service.unarchive_note(note.id, self.user_id)
        self.assertFalse(restored.is_archived)
        self.assertEqual(restored.content, note.content)


class TestTagging(NoteServiceTestCase):
    async def test_adding_same_tag_twice_is_idempotent(self):
        note = await self.notes.create(make_note(self.user_id))

        first, tag = await self.service.add_tag(note.id, "Ideas", self.user_id)
        second, same_tag = await self.service.add_tag(note.id, "  ideas ", self.user_id)

        self.assertEqual(tag.id, same_tag.id)
        self.assertEqual(second.tags, [str(tag.id)])
        self.assertEqual(len(self.tags.rows), 1)

    async def test_tag_ids_match_regardless_of_case(self):
        note = await self.notes.create(make_note(self.user_id))
        _, tag = await self.service.add_tag(note.id, "Work", self.user_id)
        await self.notes.update_fields(note.id, {"tags": [str(tag.id).upper()]})

        unchanged, _ = await self.service.add_tag(note.id, "work", self.user_id)
        self.assertEqual(len(unchanged.tags), 1)

        removed = await self.service.remove_tag(note.id, str(tag.id), self.user_id)
        self.assertEqual(removed.tags, [])

    async def test_empty_tag_name_is_rejected(self):
        note = await self.notes.create(make_note(self.user_id))
        with self.assertRaises(ValueError):
            await self.service.add_tag(note.id, "   ", self.user_id)

    async def test_detach_tag_from_every_note(self):
        tag_id = str(uuid4())
        for _ in range(3):
            await self.notes.create(make_note(self.user_id, tags=[tag_id, "other"]))
        await self.notes.create(make_note(self.user_id, tags=["other"]))

        self.assertEqual(await self.service.detach_tag(tag_id, self.user_id), 3)
        self.assertTrue(all(tag_id not in n.tags for n in self.notes.rows.values()))


class TestDeleteAndRepair(NoteServiceTestCase):
    async def test_delete_if_empty(self):
        empty = await self.notes.create(make_note(self.user_id))
        full = await self.notes.create(make_note(self.user_id, encode("words")))

        self.assertTrue(await self.service.delete_if_empty(empty.id, self.user_id))
        self.assertFalse(await self.service.delete_if_empty(full.id, self.user_id))
        self.assertIn(full.id, self.notes.rows)

    async def test_repair_direction(self):
        sentence = "This is a test of the system and more"
        note = await self.notes.create(make_note(self.user_id, encode(sentence[::-1])))

        repaired, changed = await self.service.repair_direction(note.id, self.user_id)
        self.assertTrue(changed)
        self.assertEqual(extract_text(repaired.content), sentence)

        _, changed_again = await self.service.repair_direction(note.id, self.user_id)
        self.assertFalse(changed_again)


if __name__ == "__main__":
    unittest.main()
