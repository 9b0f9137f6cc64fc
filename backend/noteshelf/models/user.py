"""
NoteShelf Backend — User SQLAlchemy Model
===========================================

What:  ORM model representing the `users` table.
Why:   Accounts own credentials; notes record their creator via `notes.user_id`.

Table Design Rationale:
    - username UNIQUE: login identity, compared exactly as stored
    - password_hash: bcrypt output only; the plaintext never reaches this table
    - email UNIQUE but nullable: optional at registration, unique when present
      (NULLs never collide in a unique index on PostgreSQL or SQLite)
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from noteshelf.database import Base, UTCDateTime

USERNAME_MAX_LENGTH = 64


class User(Base):
    """A registered account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(
        String(USERNAME_MAX_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
