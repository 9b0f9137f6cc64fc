"""
NoteShelf Backend — Category and NoteCategory Models
======================================================

What:  `categories` (named tags) and `note_categories` (many-to-many join).
Why:   A note can carry several categories and a category spans many notes.

Integrity rules enforced by the schema:
    - categories.name is UNIQUE
    - note_categories(note_id, category_id) is UNIQUE — attaching twice is a no-op
    - both foreign keys are ON DELETE CASCADE, so a join row never outlives
      either parent even if application-level cleanup is interrupted
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from noteshelf.database import Base

if TYPE_CHECKING:
    from noteshelf.models.note import Note

CATEGORY_NAME_MAX_LENGTH = 50


class Category(Base):
    """A named tag, independent of any note's lifecycle."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(
        String(CATEGORY_NAME_MAX_LENGTH),
        nullable=False,
        unique=True,
    )

    notes: Mapped[List["Note"]] = relationship(
        "Note",
        secondary="note_categories",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class NoteCategory(Base):
    """One tagging of a note with a category."""

    __tablename__ = "note_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    note_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("note_id", "category_id", name="uq_note_categories_note_category"),
    )

    def __repr__(self) -> str:
        return f"<NoteCategory(note_id={self.note_id}, category_id={self.category_id})>"
