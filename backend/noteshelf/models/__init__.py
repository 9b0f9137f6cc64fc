"""
NoteShelf Backend — ORM Models
================================

Importing this package registers every table on `Base.metadata`,
which Alembic autogenerate and `create_all_tables()` both rely on.
"""

from noteshelf.models.user import User
from noteshelf.models.note import Note
from noteshelf.models.category import Category, NoteCategory

__all__ = ["User", "Note", "Category", "NoteCategory"]
