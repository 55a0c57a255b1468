"""
TagNotes Backend: Notes Service (Business Logic)
================================================

What:  The one place that defines what a valid note is.
How:   Validates incoming note data, normalizes tags, delegates persistence to
       StorageService, and converts ORM rows into NoteResponse schemas.
Who:   Called by the route handlers; calls StorageService.
When:  For every note read and write.

Rules:
    title    required string, 1-100 characters after trimming
    content  required string, 1-999 characters after trimming
    tags     optional; a list of strings or one comma-separated string

Error Handling:
    ValidationError  raised by validate() for a broken rule
    NotFoundError    raised when StorageService reports no such row, or
                     without a query when the id is outside 1..NOTE_ID_MAX
    DatabaseError    wraps any SQLAlchemy/driver error with the failing
                     operation name; the original is chained as __cause__

NotesService keeps no state of its own between calls; it only holds the
StorageService it was constructed with.
"""

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from tagnotes.exceptions import DatabaseError, NotFoundError, ValidationError
from tagnotes.models.note import NOTE_ID_MAX, TITLE_MAX_LENGTH, Note
from tagnotes.schemas.note import NoteResponse
from tagnotes.services.storage_service import StorageService

logger = logging.getLogger(__name__)

CONTENT_MAX_LENGTH = 999

TagsInput = Union[None, str, List[str], tuple, set, frozenset]


def _to_response(note: Note) -> NoteResponse:
    return NoteResponse.model_validate(note)


def _require_storable_id(note_id: int) -> None:
    # Ids the INTEGER column cannot hold never match a row
    if not 1 <= note_id <= NOTE_ID_MAX:
        raise NotFoundError(resource="note", resource_id=note_id)


class NotesService:
    """
    Business logic layer for note operations.

    Args:
        storage: The StorageService all persistence is delegated to.
    """

    def __init__(self, storage: StorageService):
        self.storage = storage

    @contextmanager
    def _storage_errors(self, operation: str, **context: Any) -> Iterator[None]:
        """Re-raise storage failures as DatabaseError naming `operation`."""
        try:
            yield
        except (SQLAlchemyError, OSError, OverflowError) as e:
            logger.error("Storage failure during %s: %s", operation, str(e), exc_info=True)
            raise DatabaseError(
                message=f"Failed to {operation.replace('_', ' ')}. Please try again.",
                context={"operation": operation, "error_type": type(e).__name__, **context},
            ) from e

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_all(self) -> List[NoteResponse]:
        """All notes, most recently updated first."""
        with self._storage_errors("list_notes"):
            notes = await self.storage.list_all()
        return [_to_response(note) for note in notes]

    async def list_by_tag(self, tag: str) -> List[NoteResponse]:
        """
        Notes carrying `tag`, most recently updated first.

        Matching is exact against the stored (already lowercased) tags; callers
        wanting case-insensitive filtering lowercase `tag` themselves.
        """
        with self._storage_errors("list_notes_by_tag", tag=tag):
            notes = await self.storage.list_by_tag(tag)
        return [_to_response(note) for note in notes]

    async def get_by_id(self, note_id: int) -> NoteResponse:
        """
        Raises:
            NotFoundError: No note has this id (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        _require_storable_id(note_id)
        with self._storage_errors("fetch_note", note_id=note_id):
            note = await self.storage.get_by_id(note_id)
        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return _to_response(note)

    async def list_tags(self) -> List[str]:
        """Distinct tags across all notes, in lexicographic order."""
        with self._storage_errors("list_tags"):
            return await self.storage.list_tags()

    # ── Writes ────────────────────────────────────────────────────────────

    async def create(self, data: Any) -> NoteResponse:
        """
        Validate, normalize and persist a new note.

        Args:
            data: Mapping with `title`, `content` and optional `tags`.

        Returns:
            The stored note, including its generated id and timestamps.

        Raises:
            ValidationError: `data` breaks a note rule (→ 400)
            DatabaseError:   The insert failed (→ 500)
        """
        title, content, tags = self._prepare(data)
        with self._storage_errors("create_note"):
            note = await self.storage.insert(title, content, tags)
        logger.info("Note %s created (%d tags)", note.id, len(tags))
        return _to_response(note)

    async def update(self, note_id: int, data: Any) -> NoteResponse:
        """
        Replace title, content and tags of an existing note.

        Existence is checked before anything is validated or written, so an
        unknown id is always a NotFoundError. Partial updates are not
        supported: omitted tags mean "no tags".

        Raises:
            NotFoundError:   No note has this id (→ 404)
            ValidationError: `data` breaks a note rule (→ 400)
            DatabaseError:   The update failed (→ 500)
        """
        _require_storable_id(note_id)
        with self._storage_errors("update_note", note_id=note_id):
            existing = await self.storage.get_by_id(note_id)
        if existing is None:
            raise NotFoundError(resource="note", resource_id=note_id)

        title, content, tags = self._prepare(data)
        with self._storage_errors("update_note", note_id=note_id):
            result = await self.storage.update(note_id, title, content, tags)

        # Deleted by a concurrent request between the check and the write
        if not result.changed:
            raise NotFoundError(resource="note", resource_id=note_id)

        logger.info("Note %s updated", note_id)
        return _to_response(result.note)

    async def delete(self, note_id: int) -> None:
        """
        Permanently remove a note.

        Raises:
            NotFoundError: No note has this id (→ 404)
            DatabaseError: The delete failed (→ 500)
        """
        _require_storable_id(note_id)
        with self._storage_errors("delete_note", note_id=note_id):
            existing = await self.storage.get_by_id(note_id)
        if existing is None:
            raise NotFoundError(resource="note", resource_id=note_id)

        with self._storage_errors("delete_note", note_id=note_id):
            result = await self.storage.delete(note_id)

        if not result.changed:
            raise NotFoundError(resource="note", resource_id=note_id)
        logger.info("Note %s deleted", note_id)

    # ── Validation & Normalization ────────────────────────────────────────

    def _prepare(self, data: Any):
        self.validate(data)
        return (
            data["title"].strip(),
            data["content"].strip(),
            self.process_tags(data.get("tags")),
        )

    @staticmethod
    def validate(data: Any) -> None:
        """
        Check note input against the note rules.

        Raises:
            ValidationError: naming the offending field in `field`.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(
                message="Note data must be a JSON object",
                field="body",
            )

        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError(
                message="Title is required and must be a non-empty string",
                field="title",
            )
        if len(title.strip()) > TITLE_MAX_LENGTH:
            raise ValidationError(
                message=f"Title must be at most {TITLE_MAX_LENGTH} characters",
                field="title",
                context={"max_length": TITLE_MAX_LENGTH},
            )

        content = data.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ValidationError(
                message="Content is required and must be a non-empty string",
                field="content",
            )
        if len(content.strip()) > CONTENT_MAX_LENGTH:
            raise ValidationError(
                message=f"Content must be less than {CONTENT_MAX_LENGTH + 1} characters",
                field="content",
                context={"max_length": CONTENT_MAX_LENGTH},
            )

        tags = data.get("tags")
        if tags is None or isinstance(tags, str):
            return
        if isinstance(tags, (list, tuple, set, frozenset)) and all(
            isinstance(tag, str) for tag in tags
        ):
            return
        raise ValidationError(
            message="Tags must be a list of strings or a comma-separated string",
            field="tags",
        )

    @staticmethod
    def process_tags(tags: Optional[TagsInput]) -> List[str]:
        """
        Normalize tag input.

        Splits a comma-separated string, trims and lowercases each entry,
        drops empty entries, and removes duplicates keeping the first
        occurrence. `None` yields an empty list. Idempotent.

        Example:
            "Food, urgent, food"  →  ["food", "urgent"]
        """
        if tags is None:
            return []
        if isinstance(tags, str):
            tags = tags.split(",")

        normalized: List[str] = []
        seen = set()
        for raw in tags:
            tag = raw.strip().lower()
            if tag and tag not in seen:
                seen.add(tag)
                normalized.append(tag)
        return normalized
