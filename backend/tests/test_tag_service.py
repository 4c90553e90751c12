import unittest
from uuid import uuid4

from fakes import InMemoryTagRepository, make_note

from transom.core.models.tag import Tag
from transom.core.services.tag_service import TagService


class TestTagService(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.user_id = uuid4()
        self.repo = InMemoryTagRepository()
        self.service = TagService(self.repo)

    async def test_resolve_or_create_reuses_names_ignoring_case(self):
        first = await self.service.resolve_or_create("Poetry", self.user_id)
        again = await self.service.resolve_or_create("  poetry", self.user_id)
        self.assertEqual(first.id, again.id)
        self.assertEqual(first.name, "Poetry")

    async def test_tags_are_per_user(self):
        mine = await self.service.resolve_or_create("Poetry", self.user_id)
        theirs = await self.service.resolve_or_create("Poetry", uuid4())
        self.assertNotEqual(mine.id, theirs.id)
        self.assertIsNone(await self.service.get_tag(theirs.id, self.user_id))

    async def test_project_tags_can_be_listed_separately(self):
        await self.service.resolve_or_create("Novel", self.user_id, is_project=True)
        await self.service.resolve_or_create("draft", self.user_id)

        projects = await self.service.list_tags(self.user_id, is_project=True)
        self.assertEqual([t.name for t in projects], ["Novel"])
        self.assertEqual(len(await self.service.list_tags(self.user_id)), 2)

    async def test_rename_rejects_duplicates(self):
        await self.service.resolve_or_create("alpha", self.user_id)
        beta = await self.service.resolve_or_create("beta", self.user_id)

        with self.assertRaises(ValueError):
            await self.service.update_tag(beta.id, self.user_id, name="ALPHA")

        renamed = await self.service.update_tag(beta.id, self.user_id, name="gamma", is_project=True)
        self.assertEqual(renamed.name, "gamma")
        self.assertTrue(renamed.is_project)

    async def test_summaries_count_active_notes_most_used_first(self):
        rare = await self.service.resolve_or_create("rare", self.user_id)
        common = await self.service.resolve_or_create("common", self.user_id)
        unused = await self.service.resolve_or_create("unused", self.user_id)
        notes = [
            make_note(self.user_id, tags=[str(common.id)]),
            make_note(self.user_id, tags=[str(common.id).upper(), str(rare.id)]),
            make_note(self.user_id, tags=[str(rare.id)], is_archived=True),
        ]

        summaries = await self.service.summaries(self.user_id, notes)

        self.assertEqual([s.name for s in summaries], ["common", "rare", "unused"])
        self.assertEqual([s.thought_count for s in summaries], [2, 1, 0])
        self.assertEqual(summaries[2].id, unused.id)


class TestTagModel(unittest.TestCase):
    def test_is_piece_column_maps_to_is_project(self):
        tag = Tag.model_validate({"id": str(uuid4()), "name": "Book", "user_id": str(uuid4()), "is_piece": True})
        self.assertTrue(tag.is_project)
        self.assertTrue(tag.model_dump(by_alias=True)["is_piece"])

    def test_blank_names_are_rejected(self):
        with self.assertRaises(ValueError):
            Tag(name="   ", user_id=uuid4())


if __name__ == "__main__":
    unittest.main()
