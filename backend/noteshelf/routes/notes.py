"""
NoteShelf Backend — Notes Route Handlers
==========================================

What:  Note listing, CRUD and archive endpoints under /api/notes.
How:   Extracts query/path/body, applies the access policy, delegates to
       NoteService, returns JSON.

Listing precedence for GET /api/notes (first match wins):
    1. categoryId        → notes tagged with that category
    2. search (non-blank) → title/content substring search
    3. includeCategories → notes with nested categories
    4. otherwise         → plain listing
    `archived` (default false) filters every branch.

    categoryId must be a positive integer. 0, negatives and non-numbers
    are rejected with 400 rather than treated as "no filter".
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from noteshelf.database import get_db_session
from noteshelf.exceptions import DatabaseError
from noteshelf.middleware.auth import CurrentUser, optional_user, require_user
from noteshelf.schemas.note import (
    ErrorResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
    NoteWithCategoriesResponse,
    SuccessResponse,
)
from noteshelf.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])


@router.get(
    "",
    response_model=None,
    responses={
        200: {"description": "Notes, most recently updated first", "model": List[NoteWithCategoriesResponse]},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List, filter, or search notes",
)
async def list_notes(
    archived: bool = Query(default=False, description="Show archived instead of active notes"),
    search: Optional[str] = Query(default=None, description="Case-insensitive title/content substring"),
    category_id: Optional[int] = Query(default=None, alias="categoryId", ge=1),
    include_categories: bool = Query(default=False, alias="includeCategories"),
    user: Optional[CurrentUser] = Depends(optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Notes listing. Anonymous callers get the same data; the caller, when
    known, is only used for logging.
    """
    logger.debug("Listing notes for %s", user.username if user else "anonymous")

    if category_id is not None:
        notes = await note_service.list_notes_by_category(db, category_id, archived=archived)
    elif search is not None and search.strip():
        notes = await note_service.search_notes(db, search, archived=archived)
    elif include_categories:
        notes = await note_service.list_notes_with_categories(db, archived=archived)
        return [NoteWithCategoriesResponse.model_validate(note) for note in notes]
    else:
        notes = await note_service.list_notes(db, archived=archived)

    return [NoteResponse.model_validate(note) for note in notes]


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Get a single note by ID",
)
async def get_note(
    note_id: int,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await note_service.get_note(db, note_id)


@router.post(
    "",
    response_model=NoteResponse,
    status_code=201,
    responses={
        400: {"description": "Invalid note", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
    summary="Create a note",
)
async def create_note(
    payload: NoteCreate,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """The caller is recorded as the note's creator."""
    return await note_service.create_note(
        db,
        title=payload.title,
        content=payload.content,
        archived=payload.archived,
        user_id=user.id,
    )


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses={
        400: {"description": "Invalid fields", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Partially update a note",
)
async def update_note(
    note_id: int,
    payload: NoteUpdate,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Only fields present in the body change. Any authenticated user may
    edit any note.
    """
    return await note_service.update_note(db, note_id, payload.changes())


@router.patch(
    "/{note_id}/archive",
    response_model=NoteResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Toggle a note's archived flag",
)
async def toggle_archive(
    note_id: int,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await note_service.toggle_archive(db, note_id)


@router.delete(
    "/{note_id}",
    response_model=SuccessResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Delete failed", "model": ErrorResponse},
    },
    summary="Delete a note and its category links",
)
async def delete_note(
    note_id: int,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    """
    Any authenticated user may delete any note; the creator is not checked.
    """
    deleted = await note_service.delete_note(db, note_id)
    if not deleted:
        raise DatabaseError(
            message="Database error: Failed to delete note",
            context={"note_id": note_id, "user_id": user.id},
        )
    return SuccessResponse(success=True, message="Note deleted successfully")
