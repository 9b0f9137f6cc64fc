"""
NoteShelf Backend — Note Service Tests
=========================================

What:  Tests for NoteService business logic against a real SQLite session.
How:   `db_session` gives each test empty tables; failure paths use the
       `mock_db_session` AsyncMock instead.

What we test:
    ✅ New notes have createdAt == updatedAt
    ✅ Timestamps read back from the database are aware UTC values
    ✅ Partial updates touch only the given fields, updatedAt never goes back
    ✅ Archive toggle is an involution and moves notes between listings
    ✅ Deleting a note removes its category links
    ✅ Blank search equals the plain listing; search is case-insensitive
    ✅ SQLAlchemy failures surface as DatabaseError
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from noteshelf.exceptions import DatabaseError, NotFoundError, ValidationError
from noteshelf.models import NoteCategory, User
from noteshelf.services.category_service import CategoryService
from noteshelf.services.note_service import NoteService


def _ids(notes):
    return [note.id for note in notes]


class TestCreateNote:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_created_at_equals_updated_at(self, db_session):
        note = await self.service.create_note(db_session, title="Plan", content="Q3 goals")

        assert note.id is not None
        assert note.created_at == note.updated_at
        assert note.archived is False

    @pytest.mark.asyncio
    async def test_timestamps_reload_as_utc(self, db_session):
        note = await self.service.create_note(db_session, title="Plan", content="Q3 goals")
        db_session.expire_all()

        reloaded = await self.service.get_note(db_session, note.id)
        assert reloaded.created_at.utcoffset() == timedelta(0)
        assert reloaded.updated_at.utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_records_creator(self, db_session):
        user = User(username="author", password_hash="x")
        db_session.add(user)
        await db_session.flush()

        note = await self.service.create_note(db_session, "T", "C", user_id=user.id)
        assert note.user_id == user.id

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_note(db_session, title="   ", content="body")
        assert exc_info.value.field == "title"

    @pytest.mark.asyncio
    async def test_title_over_limit_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.create_note(db_session, title="x" * 101, content="body")

    @pytest.mark.asyncio
    async def test_title_at_limit_accepted(self, db_session):
        note = await self.service.create_note(db_session, title="x" * 100, content="body")
        assert len(note.title) == 100

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_note(db_session, title="T", content="")
        assert exc_info.value.field == "content"


class TestUpdateNote:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session):
        note = await self.service.create_note(db_session, "Old title", "Body stays")
        before = note.updated_at

        updated = await self.service.update_note(db_session, note.id, {"title": "New title"})

        assert updated.title == "New title"
        assert updated.content == "Body stays"
        assert updated.archived is False
        assert updated.updated_at >= before
        assert updated.created_at <= updated.updated_at

    @pytest.mark.asyncio
    async def test_update_archived_flag(self, db_session):
        note = await self.service.create_note(db_session, "T", "C")
        updated = await self.service.update_note(db_session, note.id, {"archived": True})
        assert updated.archived is True

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, db_session):
        note = await self.service.create_note(db_session, "T", "C")
        with pytest.raises(ValidationError):
            await self.service.update_note(db_session, note.id, {"owner": 3})

    @pytest.mark.asyncio
    async def test_blank_content_rejected(self, db_session):
        note = await self.service.create_note(db_session, "T", "C")
        with pytest.raises(ValidationError):
            await self.service.update_note(db_session, note.id, {"content": "  "})

    @pytest.mark.asyncio
    async def test_missing_note(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.update_note(db_session, 999, {"title": "T"})


class TestToggleArchive:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_toggle_twice_restores(self, db_session):
        note = await self.service.create_note(db_session, "T", "C")

        first = await self.service.toggle_archive(db_session, note.id)
        assert first.archived is True
        second = await self.service.toggle_archive(db_session, note.id)
        assert second.archived is False

    @pytest.mark.asyncio
    async def test_toggle_moves_between_listings(self, db_session):
        note = await self.service.create_note(db_session, "T", "C")
        await self.service.toggle_archive(db_session, note.id)

        assert _ids(await self.service.list_notes(db_session, archived=False)) == []
        assert _ids(await self.service.list_notes(db_session, archived=True)) == [note.id]

    @pytest.mark.asyncio
    async def test_toggle_advances_updated_at(self, db_session):
        note = await self.service.create_note(db_session, "T", "C")
        before = note.updated_at
        toggled = await self.service.toggle_archive(db_session, note.id)
        assert toggled.updated_at >= before

    @pytest.mark.asyncio
    async def test_missing_note(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.toggle_archive(db_session, 12345)


class TestListingAndSearch:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_most_recently_updated_first(self, db_session):
        older = await self.service.create_note(db_session, "Older", "C")
        newer = await self.service.create_note(db_session, "Newer", "C")
        assert _ids(await self.service.list_notes(db_session)) == [newer.id, older.id]

        await self.service.update_note(db_session, older.id, {"content": "edited"})
        assert _ids(await self.service.list_notes(db_session)) == [older.id, newer.id]

    @pytest.mark.asyncio
    async def test_blank_search_equals_listing(self, db_session):
        await self.service.create_note(db_session, "One", "alpha")
        await self.service.create_note(db_session, "Two", "beta")

        listing = _ids(await self.service.list_notes(db_session, archived=False))
        assert _ids(await self.service.search_notes(db_session, "", archived=False)) == listing
        assert _ids(await self.service.search_notes(db_session, "   ", archived=False)) == listing

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_over_title_and_content(self, db_session):
        by_title = await self.service.create_note(db_session, "Grocery LIST", "milk")
        by_content = await self.service.create_note(db_session, "Errands", "update the list")
        await self.service.create_note(db_session, "Unrelated", "nothing here")

        found = await self.service.search_notes(db_session, "List")
        assert set(_ids(found)) == {by_title.id, by_content.id}

    @pytest.mark.asyncio
    async def test_search_respects_archived(self, db_session):
        note = await self.service.create_note(db_session, "Archived plan", "C", archived=True)

        assert await self.service.search_notes(db_session, "plan", archived=False) == []
        assert _ids(await self.service.search_notes(db_session, "plan", archived=True)) == [note.id]

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, db_session):
        await self.service.create_note(db_session, "Plain", "no percent sign")
        literal = await self.service.create_note(db_session, "Discount", "50% off")

        assert _ids(await self.service.search_notes(db_session, "%")) == [literal.id]

    @pytest.mark.asyncio
    async def test_list_with_categories_loads_tags(self, db_session):
        categories = CategoryService()
        note = await self.service.create_note(db_session, "T", "C")
        work = await categories.create_category(db_session, "Work")
        home = await categories.create_category(db_session, "Home")
        await categories.add_category_to_note(db_session, note.id, work.id)
        await categories.add_category_to_note(db_session, note.id, home.id)
        db_session.expire_all()

        notes = await self.service.list_notes_with_categories(db_session)
        assert [c.name for c in notes[0].categories] == ["Home", "Work"]

    @pytest.mark.asyncio
    async def test_list_by_category(self, db_session):
        categories = CategoryService()
        tagged = await self.service.create_note(db_session, "Tagged", "C")
        await self.service.create_note(db_session, "Untagged", "C")
        work = await categories.create_category(db_session, "Work")
        await categories.add_category_to_note(db_session, tagged.id, work.id)

        assert _ids(await self.service.list_notes_by_category(db_session, work.id)) == [tagged.id]
        assert await self.service.list_notes_by_category(db_session, work.id + 100) == []

    @pytest.mark.asyncio
    async def test_get_missing_note(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_note(db_session, 42)
        assert "42" in exc_info.value.message


class TestDeleteNote:

    def setup_method(self):
        self.service = NoteService()
        self.categories = CategoryService()

    @pytest.mark.asyncio
    async def test_delete_removes_category_links(self, db_session):
        note = await self.service.create_note(db_session, "T", "C")
        work = await self.categories.create_category(db_session, "Work")
        await self.categories.add_category_to_note(db_session, note.id, work.id)

        assert await self.service.delete_note(db_session, note.id) is True

        remaining = await db_session.execute(
            select(func.count()).select_from(NoteCategory).where(NoteCategory.note_id == note.id)
        )
        assert remaining.scalar_one() == 0
        with pytest.raises(NotFoundError):
            await self.categories.get_note_categories(db_session, note.id)
        # The category itself survives
        assert (await self.categories.get_category(db_session, work.id)).name == "Work"

    @pytest.mark.asyncio
    async def test_delete_missing_note(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, 7)


class TestDatabaseFailures:
    """SQLAlchemy errors never leak; they become DatabaseError."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_list_notes_wraps_errors(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.list_notes(mock_db_session)
        assert exc_info.value.message == "Failed to fetch notes"

    @pytest.mark.asyncio
    async def test_get_note_wraps_errors(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with pytest.raises(DatabaseError):
            await self.service.get_note(mock_db_session, 1)

    @pytest.mark.asyncio
    async def test_create_note_wraps_flush_errors(self, mock_db_session):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

        with pytest.raises(DatabaseError):
            await self.service.create_note(mock_db_session, "T", "C")

    @pytest.mark.asyncio
    async def test_validation_runs_before_database(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.create_note(mock_db_session, "", "C")
        mock_db_session.add.assert_not_called()
