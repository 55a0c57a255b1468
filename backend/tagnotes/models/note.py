"""
TagNotes Backend: Note SQLAlchemy Models
========================================

What:  ORM models for the `notes` table and its `note_tags` child table.
How:   Inherit from the shared DeclarativeBase; `StorageService.ensure_schema()`
       creates both tables and their indexes from this metadata.
Who:   Used by StorageService only. NotesService sees the loaded objects.

Table Design:
    notes
        id          INTEGER, store-generated, immutable
        title       VARCHAR(100), stored trimmed
        content     TEXT, stored trimmed (at most 999 characters)
        created_at  set once at insert
        updated_at  set at insert, refreshed on every update
    note_tags
        note_id     FK → notes.id ON DELETE CASCADE
        tag         normalized label (lowercase, trimmed, non-empty)
        position    first-occurrence order in the submitted tag list

    Tags live in their own table so tag membership is an indexed equality
    lookup on every dialect (SQLite has no array column type).

    Indexes:
        idx_notes_updated_at   (updated_at DESC)  "most recently touched first"
        idx_note_tags_tag      (tag)              list-by-tag, distinct tags
        idx_note_tags_note_id  (note_id)          loading a note's tags
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from tagnotes.database import Base

TITLE_MAX_LENGTH = 100

# Note ids are INTEGER columns; PostgreSQL caps them at 32 bits
NOTE_ID_MAX = 2**31 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp on every dialect.

    PostgreSQL keeps the offset natively; SQLite stores naive text, so values
    are normalized to UTC on the way in and tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Note(Base):
    """
    A user note with optional tags.

    Lifecycle:
        1. Inserted by a validated create request (id and timestamps assigned)
        2. Overwritten in full (title, content, tags) by a validated update
        3. Removed permanently by delete; tag rows go with it (FK cascade)
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # UTC everywhere; the browser converts to local time
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    # selectin: tags are loaded with the note in one extra query, so they
    # stay readable after the session closes (no lazy loads under asyncio).
    tag_links: Mapped[List["NoteTag"]] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="NoteTag.position",
    )

    @property
    def tags(self) -> List[str]:
        """Tag labels in their stored order."""
        return [link.tag for link in self.tag_links]

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r}, tags={self.tags})>"


class NoteTag(Base):
    """One tag label attached to one note."""

    __tablename__ = "note_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    note_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
    )

    tag: Mapped[str] = mapped_column(Text, nullable=False)

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    note: Mapped[Note] = relationship(back_populates="tag_links")

    __table_args__ = (
        Index("idx_note_tags_tag", "tag"),
        Index("idx_note_tags_note_id", "note_id"),
    )

    def __repr__(self) -> str:
        return f"<NoteTag(note_id={self.note_id}, tag={self.tag!r})>"


# Declared after the class so the index can reference the mapped column.
Index("idx_notes_updated_at", Note.updated_at.desc())
