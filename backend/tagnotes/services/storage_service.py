"""
TagNotes Backend: Storage Service (Persistence Adapter)
=======================================================

What:  The only component that issues queries against the relational store.
How:   Owns the AsyncEngine (and therefore the connection pool) plus a session
       factory. Every operation opens one session, runs its statement(s),
       commits, and closes, so a connection is borrowed for one operation only.
Who:   Constructed once by the application lifespan (or the run-once schema
       script) and handed to NotesService.

Contract:
    - Reads never raise for missing rows: `get_by_id` returns None.
    - Writes report `changed` (rows affected) instead of raising on zero rows;
      NotesService decides what a missing row means.
    - Driver and SQLAlchemy errors propagate unchanged. No retries.
    - No validation or normalization happens here.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tagnotes.database import Base, build_session_factory
from tagnotes.models.note import Note, NoteTag, utcnow

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Outcome of an update or delete: whether a row was affected."""

    changed: bool
    note: Optional[Note] = None


def _ordered(query):
    # Most recently touched first; id breaks ties between equal timestamps
    return query.order_by(Note.updated_at.desc(), Note.id.desc())


def _tag_rows(tags: Sequence[str]) -> List[NoteTag]:
    return [NoteTag(tag=tag, position=position) for position, tag in enumerate(tags)]


class StorageService:
    """
    Thin async data-access layer over the `notes` / `note_tags` tables.

    Args:
        engine: AsyncEngine built by `tagnotes.database.build_engine()`.
                StorageService takes ownership and disposes it in `close()`.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        self.engine = engine
        self._session_factory = session_factory or build_session_factory(engine)
        # An embedded SQLite file shares the host clock with every writer;
        # server databases stamp rows with their own clock
        self._server_clock = engine.dialect.name != "sqlite"

    def _now(self):
        """Timestamp for created_at/updated_at: SQL now() or the host clock."""
        return func.now() if self._server_clock else utcnow()

    # ── Schema ────────────────────────────────────────────────────────────

    async def ensure_schema(self) -> None:
        """Create the tables and indexes if they do not exist yet (idempotent)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_all(self) -> List[Note]:
        async with self._session_factory() as session:
            result = await session.execute(_ordered(select(Note)))
            return list(result.scalars().all())

    async def list_by_tag(self, tag: str) -> List[Note]:
        """Notes having an exact `tag` label."""
        query = select(Note).where(Note.tag_links.any(NoteTag.tag == tag))
        async with self._session_factory() as session:
            result = await session.execute(_ordered(query))
            return list(result.scalars().all())

    async def get_by_id(self, note_id: int) -> Optional[Note]:
        async with self._session_factory() as session:
            result = await session.execute(select(Note).where(Note.id == note_id))
            return result.scalar_one_or_none()

    async def list_tags(self) -> List[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(NoteTag.tag).distinct().order_by(NoteTag.tag)
            )
            return list(result.scalars().all())

    # ── Writes ────────────────────────────────────────────────────────────

    async def insert(self, title: str, content: str, tags: Sequence[str]) -> Note:
        """
        Insert one note with its tags.

        Returns:
            The new Note, carrying the store-generated id and both timestamps.
        """
        now = self._now()
        note = Note(
            title=title,
            content=content,
            created_at=now,
            updated_at=now,
            tag_links=_tag_rows(tags),
        )
        async with self._session_factory() as session:
            async with session.begin():
                session.add(note)
                await session.flush()
                # SQL-expression timestamps are expired by the flush
                await session.refresh(note, attribute_names=["created_at", "updated_at"])
        logger.debug("Inserted note %s", note.id)
        return note

    async def update(
        self, note_id: int, title: str, content: str, tags: Sequence[str]
    ) -> WriteResult:
        """
        Overwrite title, content and tags of one note and refresh updated_at.

        Zero rows affected yields `WriteResult(changed=False)`; the note row
        and its tag rows are replaced in a single transaction.
        """
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(Note)
                    .where(Note.id == note_id)
                    .values(title=title, content=content, updated_at=self._now())
                )
                if result.rowcount == 0:
                    return WriteResult(changed=False)

                await session.execute(delete(NoteTag).where(NoteTag.note_id == note_id))
                session.add_all(
                    NoteTag(note_id=note_id, tag=tag, position=position)
                    for position, tag in enumerate(tags)
                )
                await session.flush()

                refreshed = await session.execute(
                    select(Note)
                    .where(Note.id == note_id)
                    .execution_options(populate_existing=True)
                )
                note = refreshed.scalar_one()
        logger.debug("Updated note %s", note_id)
        return WriteResult(changed=True, note=note)

    async def delete(self, note_id: int) -> WriteResult:
        """Delete one note; its tag rows are removed by the FK cascade."""
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(delete(Note).where(Note.id == note_id))
        changed = result.rowcount > 0
        if changed:
            logger.debug("Deleted note %s", note_id)
        return WriteResult(changed=changed)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def ping(self) -> None:
        """Round-trip a trivial query; raises if the store is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
        logger.info("Database engine disposed")
