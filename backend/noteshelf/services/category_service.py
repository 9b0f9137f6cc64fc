"""
NoteShelf Backend — Category Service
======================================

What:  Category CRUD and note ↔ category tagging.
Why:   Categories have their own lifecycle; tagging is the only link to notes.

Tagging rules:
    - add is idempotent: attaching an existing pair succeeds without a new row
    - remove of a pair that does not exist is NotFoundError
    - deleting a category removes every link to it in the same transaction
"""

import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from noteshelf.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from noteshelf.models.category import CATEGORY_NAME_MAX_LENGTH, Category, NoteCategory
from noteshelf.models.note import Note

logger = logging.getLogger(__name__)


class CategoryService:
    """
    Business logic for categories and note tagging.

    Responsibilities:
        - list_categories / get_category / create_category / delete_category
        - get_note_categories / add_category_to_note / remove_category_from_note
    """

    async def list_categories(self, db: AsyncSession) -> List[Category]:
        """All categories ordered by name."""
        try:
            result = await db.execute(select(Category).order_by(Category.name))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing categories: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to fetch categories")

    async def get_category(self, db: AsyncSession, category_id: int) -> Category:
        try:
            result = await db.execute(select(Category).where(Category.id == category_id))
            category = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching category %s: %s", category_id, str(e))
            raise DatabaseError(
                message="Failed to fetch category",
                context={"category_id": category_id},
            )

        if category is None:
            raise NotFoundError(resource="category", resource_id=category_id)
        return category

    async def create_category(self, db: AsyncSession, name: str) -> Category:
        """
        Raises:
            ValidationError: blank name or longer than 50 chars
            ConflictError: a category with this exact name exists
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Category name is required", field="name")
        if len(name) > CATEGORY_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Category name must be at most {CATEGORY_NAME_MAX_LENGTH} characters",
                field="name",
            )

        try:
            existing = await db.execute(select(Category.id).where(Category.name == name))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError("Category already exists", field="name")

            category = Category(name=name)
            db.add(category)
            await db.flush()
            await db.refresh(category)
        except IntegrityError:
            raise ConflictError("Category already exists", field="name")
        except SQLAlchemyError as e:
            logger.error("Database error creating category: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to create category")

        logger.info("Created category %s (%s)", category.id, category.name)
        return category

    async def delete_category(self, db: AsyncSession, category_id: int) -> None:
        """Deletes the category and every note link pointing at it."""
        try:
            existing = await db.execute(select(Category.id).where(Category.id == category_id))
            if existing.scalar_one_or_none() is None:
                raise NotFoundError(resource="category", resource_id=category_id)

            await db.execute(delete(NoteCategory).where(NoteCategory.category_id == category_id))
            await db.execute(delete(Category).where(Category.id == category_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting category %s: %s", category_id, str(e))
            raise DatabaseError(
                message="Failed to delete category",
                context={"category_id": category_id},
            )

        logger.info("Deleted category %s", category_id)

    # ── Tagging ──────────────────────────────────────────────────────────

    async def _require_note(self, db: AsyncSession, note_id: int) -> None:
        result = await db.execute(select(Note.id).where(Note.id == note_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(resource="note", resource_id=note_id)

    async def get_note_categories(self, db: AsyncSession, note_id: int) -> List[Category]:
        """
        Categories attached to a note, ordered by name.

        Raises:
            NotFoundError: the note does not exist (never an orphaned list)
        """
        try:
            await self._require_note(db, note_id)
            result = await db.execute(
                select(Category)
                .join(NoteCategory, NoteCategory.category_id == Category.id)
                .where(NoteCategory.note_id == note_id)
                .order_by(Category.name)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error fetching categories of note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Failed to fetch note categories",
                context={"note_id": note_id},
            )

    async def add_category_to_note(
        self, db: AsyncSession, note_id: int, category_id: int
    ) -> bool:
        """
        Attach a category to a note.

        Returns:
            True if a new link was created, False if it already existed.

        Raises:
            NotFoundError: note or category does not exist
        """
        try:
            await self._require_note(db, note_id)
            category = await db.execute(select(Category.id).where(Category.id == category_id))
            if category.scalar_one_or_none() is None:
                raise NotFoundError(resource="category", resource_id=category_id)

            existing = await db.execute(
                select(NoteCategory.id).where(
                    NoteCategory.note_id == note_id,
                    NoteCategory.category_id == category_id,
                )
            )
            if existing.scalar_one_or_none() is not None:
                return False

            db.add(NoteCategory(note_id=note_id, category_id=category_id))
            await db.flush()
        except IntegrityError:
            # A concurrent request attached the same pair first; this request
            # wrote nothing else, so dropping its transaction loses nothing.
            await db.rollback()
            return False
        except SQLAlchemyError as e:
            logger.error(
                "Database error adding category %s to note %s: %s", category_id, note_id, str(e)
            )
            raise DatabaseError(
                message="Failed to add category to note",
                context={"note_id": note_id, "category_id": category_id},
            )

        logger.info("Attached category %s to note %s", category_id, note_id)
        return True

    async def remove_category_from_note(
        self, db: AsyncSession, note_id: int, category_id: int
    ) -> None:
        """
        Raises:
            NotFoundError: the note was not tagged with this category
        """
        try:
            result = await db.execute(
                delete(NoteCategory).where(
                    NoteCategory.note_id == note_id,
                    NoteCategory.category_id == category_id,
                )
            )
        except SQLAlchemyError as e:
            logger.error(
                "Database error removing category %s from note %s: %s", category_id, note_id, str(e)
            )
            raise DatabaseError(
                message="Failed to remove category from note",
                context={"note_id": note_id, "category_id": category_id},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="note-category relationship")
        logger.info("Detached category %s from note %s", category_id, note_id)


category_service = CategoryService()
