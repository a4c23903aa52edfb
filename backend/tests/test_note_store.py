"""
Notes API - Note Store Tests
=============================

What:  Tests for NoteStore against a real SQLite database.

What we test:
    ✅ create → get round trip and server-assigned ids
    ✅ NotFoundError for get/update/delete of missing ids
    ✅ Search: empty query, case-insensitive title/content matching, literal wildcards
    ✅ Idempotent table creation across initializations
    ✅ Connection failures and statement failures map to our exceptions
"""

import pytest
from sqlalchemy import text

from notesapi.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    NotFoundError,
)
from notesapi.services.note_store import MAX_NOTE_ID, NoteStore


class TestNoteStoreInitialize:
    """Tests for NoteStore.initialize()."""

    @pytest.mark.asyncio
    async def test_initialize_creates_table(self, store):
        async with store.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'notes'")
            )
            assert result.scalar() == "notes"

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, db_url):
        """A second initialization keeps the existing table and rows."""
        first = await NoteStore.initialize(db_url)
        note_id = await first.create("kept", "across restarts")
        await first.close()

        second = await NoteStore.initialize(db_url)
        try:
            note = await second.get(note_id)
            assert note.title == "kept"
        finally:
            await second.close()

    @pytest.mark.asyncio
    async def test_initialize_invalid_connection_string(self):
        with pytest.raises(DatabaseConnectionError, match="Invalid database connection string"):
            await NoteStore.initialize("not a connection string")

    @pytest.mark.asyncio
    async def test_initialize_unknown_driver(self):
        with pytest.raises(DatabaseConnectionError):
            await NoteStore.initialize("nosuchdb://user@localhost/notes")

    @pytest.mark.asyncio
    async def test_initialize_unreachable_database(self, tmp_path):
        """SQLite cannot open a file inside a directory that does not exist."""
        missing = tmp_path / "missing-dir" / "notes.db"
        with pytest.raises(DatabaseConnectionError) as exc_info:
            await NoteStore.initialize(f"sqlite+aiosqlite:///{missing}")
        assert "error_type" in exc_info.value.context

    @pytest.mark.asyncio
    async def test_initialize_postgres_url_with_sslmode(self):
        """sslmode is handed to asyncpg as ssl; the refused connect is what fails."""
        with pytest.raises(DatabaseConnectionError) as exc_info:
            await NoteStore.initialize("postgres://u:p@127.0.0.1:1/db?sslmode=disable")
        assert exc_info.value.message == "Could not connect to the database"
        assert exc_info.value.context["error_type"] != "TypeError"

    @pytest.mark.asyncio
    async def test_initialize_unknown_connection_option(self):
        with pytest.raises(DatabaseConnectionError):
            await NoteStore.initialize("postgres://u:p@127.0.0.1:1/db?bogus_option=1")

    @pytest.mark.asyncio
    async def test_initialize_keyword_dsn_with_bad_port(self):
        with pytest.raises(DatabaseConnectionError, match="Invalid database connection string"):
            await NoteStore.initialize("host=127.0.0.1 port=abc dbname=notes")


class TestNoteStoreCrud:
    """Tests for get, create, update and delete."""

    @pytest.mark.asyncio
    async def test_create_then_get(self, store):
        note_id = await store.create("A", "B")

        note = await store.get(note_id)

        assert note.id == note_id
        assert note.title == "A"
        assert note.content == "B"

    @pytest.mark.asyncio
    async def test_ids_are_positive_and_unique(self, store):
        ids = [await store.create(f"title {i}", f"content {i}") for i in range(3)]

        assert all(note_id > 0 for note_id in ids)
        assert len(set(ids)) == 3

    @pytest.mark.asyncio
    async def test_create_get_delete_lifecycle(self, store):
        """create → 1, get(1), delete(1), get(1) → NotFound."""
        note_id = await store.create("A", "B")
        assert note_id == 1

        note = await store.get(1)
        assert (note.id, note.title, note.content) == (1, "A", "B")

        await store.delete(1)

        with pytest.raises(NotFoundError):
            await store.get(1)

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        with pytest.raises(NotFoundError, match="note with ID '42' was not found"):
            await store.get(42)

    @pytest.mark.asyncio
    async def test_get_id_beyond_serial_range(self, store):
        with pytest.raises(NotFoundError):
            await store.get(MAX_NOTE_ID + 1)

    @pytest.mark.asyncio
    async def test_update_replaces_title_and_content(self, store):
        note_id = await store.create("old title", "old content")

        await store.update(note_id, "new title", "new content")

        note = await store.get(note_id)
        assert note.title == "new title"
        assert note.content == "new content"

    @pytest.mark.asyncio
    async def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            await store.update(99, "title", "content")

    @pytest.mark.asyncio
    async def test_update_does_not_touch_other_notes(self, store):
        first = await store.create("first", "one")
        second = await store.create("second", "two")

        await store.update(first, "first!", "one!")

        other = await store.get(second)
        assert (other.title, other.content) == ("second", "two")

    @pytest.mark.asyncio
    async def test_delete_missing(self, store):
        with pytest.raises(NotFoundError):
            await store.delete(7)

    @pytest.mark.asyncio
    async def test_delete_twice(self, store):
        note_id = await store.create("A", "B")
        await store.delete(note_id)

        with pytest.raises(NotFoundError):
            await store.delete(note_id)


class TestNoteStoreSearch:
    """Tests for search()."""

    @pytest.fixture
    def notes(self):
        return [
            ("Shopping list", "Buy milk and eggs"),
            ("Work", "Finish the quarterly REPORT"),
            ("Progress", "100% done"),
        ]

    async def _seed(self, store, notes):
        return [await store.create(title, content) for title, content in notes]

    @pytest.mark.asyncio
    async def test_empty_query_returns_all(self, store, notes):
        ids = await self._seed(store, notes)

        result = await store.search("")

        assert sorted(note.id for note in result) == sorted(ids)

    @pytest.mark.asyncio
    async def test_empty_table(self, store):
        assert await store.search("") == []

    @pytest.mark.asyncio
    async def test_matches_title_case_insensitively(self, store, notes):
        await self._seed(store, notes)

        result = await store.search("SHOPPING")

        assert [note.title for note in result] == ["Shopping list"]

    @pytest.mark.asyncio
    async def test_matches_content_case_insensitively(self, store, notes):
        await self._seed(store, notes)

        result = await store.search("report")

        assert [note.title for note in result] == ["Work"]

    @pytest.mark.asyncio
    async def test_matches_either_field(self, store, notes):
        await self._seed(store, notes)

        # "o" appears in every note, in title or content
        result = await store.search("o")

        assert len(result) == 3

    @pytest.mark.asyncio
    async def test_no_match_is_empty_list(self, store, notes):
        await self._seed(store, notes)

        assert await store.search("zebra") == []

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, store, notes):
        await self._seed(store, notes)

        percent = await store.search("%")
        underscore = await store.search("_")

        assert [note.title for note in percent] == ["Progress"]
        assert underscore == []


class TestNoteStoreFailures:
    """Statement failures surface as DatabaseError, not driver exceptions."""

    async def _drop_table(self, store):
        async with store.engine.begin() as conn:
            await conn.execute(text("DROP TABLE notes"))

    @pytest.mark.asyncio
    async def test_get_failure(self, store):
        await self._drop_table(store)
        with pytest.raises(DatabaseError):
            await store.get(1)

    @pytest.mark.asyncio
    async def test_create_failure(self, store):
        await self._drop_table(store)
        with pytest.raises(DatabaseError):
            await store.create("A", "B")

    @pytest.mark.asyncio
    async def test_update_failure(self, store):
        await self._drop_table(store)
        with pytest.raises(DatabaseError):
            await store.update(1, "A", "B")

    @pytest.mark.asyncio
    async def test_delete_failure(self, store):
        await self._drop_table(store)
        with pytest.raises(DatabaseError):
            await store.delete(1)

    @pytest.mark.asyncio
    async def test_search_failure(self, store):
        await self._drop_table(store)
        with pytest.raises(DatabaseError):
            await store.search("anything")

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True
