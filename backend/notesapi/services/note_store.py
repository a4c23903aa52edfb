"""
Notes API - Note Store (Storage Accessor)
==========================================

What:  Owns the database engine and translates the five note operations
       (get, create, update, delete, search) into parameterized SQL.
How:   One short-lived AsyncSession per call, one statement per session,
       commit after writes. No retries, no caching, no multi-statement
       transactions.
Who:   Created once by the CLI (or the app lifespan) and handed to route
       handlers through the `get_store` dependency.

Error Translation:
    no row returned / zero rows affected  → NotFoundError
    driver or database failure            → DatabaseError (detail logged)
    cannot connect / create table         → DatabaseConnectionError

Statements issued:
    get     SELECT id, title, content FROM notes WHERE id = :id
    create  INSERT INTO notes (title, content) VALUES (:title, :content)
    update  UPDATE notes SET title = :title, content = :content WHERE id = :id
    delete  DELETE FROM notes WHERE id = :id
    search  SELECT ... FROM notes
            [WHERE lower(title) LIKE :q OR lower(content) LIKE :q] ORDER BY id
"""

import logging
from typing import List

from sqlalchemy import delete, or_, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from notesapi.database import Base, build_engine, build_session_factory
from notesapi.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    NotFoundError,
)
from notesapi.models.note import Note

logger = logging.getLogger(__name__)

# Errors a statement can surface: SQLAlchemy-wrapped driver errors, plus raw
# socket errors some drivers raise while (re)connecting.
DRIVER_ERRORS = (SQLAlchemyError, OSError)

# The first connect can also fail with TypeError: asyncpg rejects unknown
# options passed through the URL query string.
CONNECT_ERRORS = DRIVER_ERRORS + (TypeError,)

# Largest value a PostgreSQL SERIAL column can hold. Larger ids cannot exist,
# and binding them would fail with an out-of-range error instead of a miss.
MAX_NOTE_ID = 2**31 - 1


class NoteStore:
    """
    Storage accessor for notes.

    Use `await NoteStore.initialize(dsn)` rather than the constructor; it
    builds the engine and makes sure the table exists.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_factory = build_session_factory(engine)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @classmethod
    async def initialize(cls, connection_string: str) -> "NoteStore":
        """
        Open the engine and create the notes table if it is absent.

        Args:
            connection_string: SQLAlchemy URL, postgres:// URL or libpq
                keyword/value string

        Raises:
            DatabaseConnectionError: invalid connection string, missing
                driver, unreachable database, or DDL failure.
        """
        try:
            engine = build_engine(connection_string)
        except (SQLAlchemyError, ImportError, ValueError) as e:
            logger.error("Invalid database connection string: %s", e)
            raise DatabaseConnectionError(
                message="Invalid database connection string",
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e

        try:
            # create_all checks for the table first, so this is idempotent
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except CONNECT_ERRORS as e:
            await engine.dispose()
            logger.error("Could not initialize database: %s", e)
            raise DatabaseConnectionError(
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e

        logger.info("Connected to %s database; notes table ready",
                    engine.url.get_backend_name())
        return cls(engine)

    async def get(self, note_id: int) -> Note:
        """
        Fetch one note by id.

        Raises:
            NotFoundError: no note has this id (→ 404)
            DatabaseError: query execution failed (→ 500)
        """
        if note_id > MAX_NOTE_ID:
            raise NotFoundError(resource="note", resource_id=str(note_id))

        try:
            async with self._session_factory() as session:
                note = await session.get(Note, note_id)
        except DRIVER_ERRORS as e:
            logger.error("Database error fetching note %s: %s", note_id, e)
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": note_id, "error_type": type(e).__name__},
            ) from e

        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note

    async def create(self, title: str, content: str) -> int:
        """Insert a note and return the id the database assigned to it."""
        note = Note(title=title, content=content)
        try:
            async with self._session_factory() as session:
                session.add(note)
                await session.commit()
        except DRIVER_ERRORS as e:
            logger.error("Database error creating note: %s", e)
            raise DatabaseError(
                message="Could not create the note. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Note %s created", note.id)
        return note.id

    async def update(self, note_id: int, title: str, content: str) -> None:
        """
        Replace title and content of an existing note.

        Raises:
            NotFoundError: zero rows affected
            DatabaseError: statement failed
        """
        if note_id > MAX_NOTE_ID:
            raise NotFoundError(resource="note", resource_id=str(note_id))

        stmt = (
            update(Note)
            .where(Note.id == note_id)
            .values(title=title, content=content)
            .execution_options(synchronize_session=False)
        )
        affected = await self._execute_write(stmt, "updating", note_id)
        if affected == 0:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        logger.info("Note %s updated", note_id)

    async def delete(self, note_id: int) -> None:
        """
        Delete a note by id.

        Raises:
            NotFoundError: zero rows affected
            DatabaseError: statement failed
        """
        if note_id > MAX_NOTE_ID:
            raise NotFoundError(resource="note", resource_id=str(note_id))

        stmt = (
            delete(Note)
            .where(Note.id == note_id)
            .execution_options(synchronize_session=False)
        )
        affected = await self._execute_write(stmt, "deleting", note_id)
        if affected == 0:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        logger.info("Note %s deleted", note_id)

    async def search(self, query: str) -> List[Note]:
        """
        Find notes whose title or content contains `query`, ignoring case.

        An empty query returns every note. The query is matched literally:
        LIKE wildcards (% and _) inside it are escaped. No match gives an
        empty list, never an error.
        """
        stmt = select(Note).order_by(Note.id)
        if query:
            stmt = stmt.where(
                or_(
                    Note.title.icontains(query, autoescape=True),
                    Note.content.icontains(query, autoescape=True),
                )
            )

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                notes = list(result.scalars().all())
        except DRIVER_ERRORS as e:
            logger.error("Database error searching notes for %r: %s", query, e)
            raise DatabaseError(
                message="Could not search notes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.debug("Search %r matched %d notes", query, len(notes))
        return notes

    async def ping(self) -> bool:
        """Run SELECT 1; False when the database cannot be reached."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except DRIVER_ERRORS as e:
            logger.warning("Database ping failed: %s", e)
            return False
        return True

    async def close(self) -> None:
        """Dispose the engine, closing every pooled connection."""
        await self._engine.dispose()
        logger.info("Database connections closed")

    async def _execute_write(self, stmt, action: str, note_id: int) -> int:
        """Run one UPDATE/DELETE, commit, and return the affected row count."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                affected = result.rowcount
                await session.commit()
        except DRIVER_ERRORS as e:
            logger.error("Database error %s note %s: %s", action, note_id, e)
            raise DatabaseError(
                message="Could not save changes to the note. Please try again.",
                context={"note_id": note_id, "error_type": type(e).__name__},
            ) from e
        return affected
