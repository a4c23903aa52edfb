"""
Notes API - Note SQLAlchemy Model
==================================

What:  ORM model for the `notes` table.
Who:   Used by NoteStore for every statement and for create-if-absent DDL.

Table:
    notes(id serial primary key, title text, content text)

    Non-empty title/content is enforced by the request schema, so the
    columns stay nullable.
"""

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from notesapi.database import Base


class Note(Base):
    """
    A single persisted note.

    Lifecycle:
        1. Inserted by NoteStore.create(); the database assigns `id`
        2. Title and content replaced together by NoteStore.update()
        3. Removed by NoteStore.delete(); no soft delete, no versions
    """

    __tablename__ = "notes"

    # SERIAL on PostgreSQL, INTEGER PRIMARY KEY (rowid alias) on SQLite
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    title: Mapped[str] = mapped_column(Text)

    content: Mapped[str] = mapped_column(Text)

    def __repr__(self) -> str:
        """Developer-friendly string representation for debugging."""
        return f"<Note(id={self.id}, title='{self.title}')>"
