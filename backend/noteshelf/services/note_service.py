"""
NoteShelf Backend — Note Service (Business Logic)
===================================================

What:  CRUD, archive and query operations over notes.
Why:   Encapsulates all note rules in one place, independent of HTTP concerns.
How:   Each method receives the request's AsyncSession; commit/rollback is
       owned by `get_db_session`, so multi-statement operations are atomic
       per request.
Who:   Called by the notes route handlers.

Ordering:
    Every listing is most-recently-updated first, ties broken by id DESC so
    results are stable for notes written within the same clock tick.

Concurrency:
    toggle_archive is a single UPDATE ... SET archived = NOT archived, so two
    concurrent toggles always produce two flips. Other writes are
    last-writer-wins.

Error Handling Strategy:
    Missing rows → NotFoundError, bad input → ValidationError, and any
    SQLAlchemyError → DatabaseError (details logged, generic message returned).
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, not_, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from noteshelf.exceptions import DatabaseError, NotFoundError, ValidationError
from noteshelf.models.category import NoteCategory
from noteshelf.models.note import NOTE_TITLE_MAX_LENGTH, Note, utc_now

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"title", "content", "archived"}


def _validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title is required", field="title")
    if len(title) > NOTE_TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must be at most {NOTE_TITLE_MAX_LENGTH} characters", field="title"
        )
    return title


def _validate_content(content: Any) -> str:
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Content is required", field="content")
    return content


def _validate_archived(archived: Any) -> bool:
    if not isinstance(archived, bool):
        raise ValidationError("Archived must be a boolean", field="archived")
    return archived


_VALIDATORS = {
    "title": _validate_title,
    "content": _validate_content,
    "archived": _validate_archived,
}


def _newest_first(query):
    return query.order_by(Note.updated_at.desc(), Note.id.desc())


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - list_notes / list_notes_with_categories / search_notes /
          list_notes_by_category: filtered listings
        - get_note: single note with not-found handling
        - create_note / update_note / toggle_archive / delete_note: writes
    """

    # ── Reads ────────────────────────────────────────────────────────────

    async def list_notes(self, db: AsyncSession, archived: bool = False) -> List[Note]:
        """All notes with the given archived flag."""
        try:
            result = await db.execute(
                _newest_first(select(Note).where(Note.archived == archived))
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch notes",
                context={"error_type": type(e).__name__},
            )

    async def list_notes_with_categories(
        self, db: AsyncSession, archived: bool = False
    ) -> List[Note]:
        """
        Notes with their categories eagerly loaded.

        Query plan:
            SELECT notes ... ORDER BY updated_at DESC
            SELECT categories JOIN note_categories WHERE note_id IN (...)
        selectinload keeps it at two queries regardless of note count.
        """
        try:
            result = await db.execute(
                _newest_first(
                    select(Note)
                    .where(Note.archived == archived)
                    .options(selectinload(Note.categories))
                )
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing notes with categories: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch notes",
                context={"error_type": type(e).__name__},
            )

    async def search_notes(
        self, db: AsyncSession, query: Optional[str], archived: bool = False
    ) -> List[Note]:
        """
        Case-insensitive substring search over title OR content.

        A blank query applies no filter, so it returns exactly what
        list_notes(archived) returns. Wildcards in the query are literal.
        """
        if query is None or not query.strip():
            return await self.list_notes(db, archived=archived)

        try:
            result = await db.execute(
                _newest_first(
                    select(Note).where(
                        Note.archived == archived,
                        or_(
                            Note.title.icontains(query, autoescape=True),
                            Note.content.icontains(query, autoescape=True),
                        ),
                    )
                )
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error searching notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to search notes",
                context={"error_type": type(e).__name__},
            )

    async def list_notes_by_category(
        self, db: AsyncSession, category_id: int, archived: bool = False
    ) -> List[Note]:
        """Notes tagged with `category_id`; an unknown category yields []."""
        try:
            result = await db.execute(
                _newest_first(
                    select(Note)
                    .join(NoteCategory, NoteCategory.note_id == Note.id)
                    .where(
                        NoteCategory.category_id == category_id,
                        Note.archived == archived,
                    )
                )
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing notes for category %s: %s", category_id, str(e))
            raise DatabaseError(
                message="Failed to fetch notes",
                context={"category_id": category_id},
            )

    async def get_note(self, db: AsyncSession, note_id: int) -> Note:
        """
        Retrieve a single note by ID.

        Raises:
            NotFoundError: Note with given ID does not exist (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            result = await db.execute(select(Note).where(Note.id == note_id))
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Failed to fetch note",
                context={"note_id": note_id},
            )

        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return note

    # ── Writes ───────────────────────────────────────────────────────────

    async def create_note(
        self,
        db: AsyncSession,
        title: str,
        content: str,
        archived: bool = False,
        user_id: Optional[int] = None,
    ) -> Note:
        """
        Insert a note with created_at == updated_at == now.

        Raises:
            ValidationError: empty title/content or title over 100 chars
        """
        _validate_title(title)
        _validate_content(content)
        _validate_archived(archived)

        now = utc_now()
        note = Note(
            title=title,
            content=content,
            archived=archived,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        try:
            db.add(note)
            await db.flush()
            await db.refresh(note)
        except SQLAlchemyError as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create note",
                context={"error_type": type(e).__name__},
            )

        logger.info("Created note %s (user_id=%s)", note.id, user_id)
        return note

    async def update_note(
        self, db: AsyncSession, note_id: int, changes: Dict[str, Any]
    ) -> Note:
        """
        Partial update: only keys present in `changes` are written.
        updated_at is refreshed even when `changes` is empty.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown note field(s): {', '.join(sorted(unknown))}",
                context={"fields": sorted(unknown)},
            )
        validated = {field: _VALIDATORS[field](value) for field, value in changes.items()}

        note = await self.get_note(db, note_id)
        try:
            for field, value in validated.items():
                setattr(note, field, value)
            note.updated_at = utc_now()
            await db.flush()
            await db.refresh(note)
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to update note",
                context={"note_id": note_id},
            )

        logger.info("Updated note %s fields=%s", note_id, sorted(validated))
        return note

    async def toggle_archive(self, db: AsyncSession, note_id: int) -> Note:
        """
        Flip `archived` in one statement:

            UPDATE notes SET archived = NOT archived, updated_at = :now WHERE id = :id

        No read precedes the write, so interleaved toggles cannot lose a flip.
        """
        try:
            result = await db.execute(
                update(Note)
                .where(Note.id == note_id)
                .values(archived=not_(Note.archived), updated_at=utc_now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="note", resource_id=note_id)
            note = await db.get(Note, note_id, populate_existing=True)
        except SQLAlchemyError as e:
            logger.error("Database error archiving note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to archive note",
                context={"note_id": note_id},
            )

        logger.info("Note %s archived=%s", note_id, note.archived)
        return note

    async def delete_note(self, db: AsyncSession, note_id: int) -> bool:
        """
        Remove a note and its category links.

        Join rows are deleted first, then the note, inside the request
        transaction; the ON DELETE CASCADE foreign key covers anything left.

        Returns:
            True when the note row was deleted, False when it disappeared
            between the existence check and the delete.

        Raises:
            NotFoundError: note does not exist
        """
        try:
            existing = await db.execute(select(Note.id).where(Note.id == note_id))
            if existing.scalar_one_or_none() is None:
                raise NotFoundError(resource="note", resource_id=note_id)

            await db.execute(delete(NoteCategory).where(NoteCategory.note_id == note_id))
            result = await db.execute(delete(Note).where(Note.id == note_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Server error during note deletion",
                context={"note_id": note_id},
            )

        deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted note %s", note_id)
        else:
            logger.warning("Note %s vanished before it could be deleted", note_id)
        return deleted


note_service = NoteService()
