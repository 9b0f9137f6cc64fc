"""
NoteShelf Backend — Application Package Initializer
===================================================

What: Marks the `noteshelf` directory as a Python package.
Why:  Enables module imports like `from noteshelf.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows the same layered architecture end to end:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Access Control (Dependencies)   │  ← Bearer token → CurrentUser
    ├─────────────────────────────────────┤
    │   Services (Notes, Categories, Auth)│  ← Business rules, validation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never build HTTP responses.
"""

__version__ = "1.0.0"
