"""
NoteShelf Backend — Note SQLAlchemy Model
============================================

What:  ORM model representing the `notes` table.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design Rationale:
    - title VARCHAR(100): short headline, enforced again at the API layer
    - content TEXT: no artificial length limit on the body
    - archived BOOLEAN: soft-hide flag; archived notes only appear on request
    - user_id: creator, nullable and SET NULL on account removal.
      Recorded for attribution only; mutations are not restricted to the creator.
    - created_at / updated_at: UTC with timezone; updated_at moves on every write

    Index on updated_at DESC:
        Every listing is "most recently edited first".
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from noteshelf.database import Base, UTCDateTime

if TYPE_CHECKING:
    from noteshelf.models.category import Category

NOTE_TITLE_MAX_LENGTH = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A user-authored text record.

    Lifecycle:
        1. Created with archived=False, created_at == updated_at
        2. Edited / archived / unarchived any number of times (updated_at advances)
        3. Deleted together with its note_categories rows

    Query Patterns:
        - Active listing: WHERE archived = false ORDER BY updated_at DESC
        - Search: WHERE archived = :a AND (title ILIKE :q OR content ILIKE :q)
        - By category: JOIN note_categories ON note_id WHERE category_id = :c
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(NOTE_TITLE_MAX_LENGTH), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    archived: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Read side of the many-to-many; rows are written through NoteCategory
    categories: Mapped[List["Category"]] = relationship(
        "Category",
        secondary="note_categories",
        order_by="Category.name",
        viewonly=True,
    )

    __table_args__ = (
        Index("idx_notes_updated_at", updated_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, title='{self.title}', archived={self.archived}, "
            f"updated_at='{self.updated_at}')>"
        )
