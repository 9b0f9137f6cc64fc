"""
NoteShelf Backend — Category and Tagging Route Handlers
=========================================================

What:  /api/categories CRUD and /api/notes/{id}/categories tagging.
Access:
    GET  /api/categories, GET /api/categories/{id}   optional auth
    all other routes in this module                  required auth
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from noteshelf.database import get_db_session
from noteshelf.middleware.auth import CurrentUser, optional_user, require_user
from noteshelf.schemas.category import CategoryCreate, CategoryResponse
from noteshelf.schemas.note import ErrorResponse, SuccessResponse
from noteshelf.services.category_service import category_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Categories"])

_AUTH_ERRORS = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Not found", "model": ErrorResponse}}


# ── Categories ────────────────────────────────────────────────────────────

@router.get(
    "/categories",
    response_model=List[CategoryResponse],
    summary="List categories ordered by name",
)
async def list_categories(
    user: Optional[CurrentUser] = Depends(optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await category_service.list_categories(db)


@router.get(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    responses=_NOT_FOUND,
    summary="Get a category",
)
async def get_category(
    category_id: int,
    user: Optional[CurrentUser] = Depends(optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await category_service.get_category(db, category_id)


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=201,
    responses={
        400: {"description": "Invalid or duplicate name", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Create a category",
)
async def create_category(
    payload: CategoryCreate,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await category_service.create_category(db, payload.name)


@router.delete(
    "/categories/{category_id}",
    response_model=SuccessResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Delete a category and detach it from every note",
)
async def delete_category(
    category_id: int,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await category_service.delete_category(db, category_id)
    return SuccessResponse(success=True)


# ── Note tagging ──────────────────────────────────────────────────────────

@router.get(
    "/notes/{note_id}/categories",
    response_model=List[CategoryResponse],
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Categories attached to a note",
)
async def get_note_categories(
    note_id: int,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await category_service.get_note_categories(db, note_id)


@router.post(
    "/notes/{note_id}/categories/{category_id}",
    response_model=SuccessResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Attach a category to a note (idempotent)",
)
async def add_category_to_note(
    note_id: int,
    category_id: int,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    created = await category_service.add_category_to_note(db, note_id, category_id)
    return SuccessResponse(success=True, message=None if created else "Category already attached")


@router.delete(
    "/notes/{note_id}/categories/{category_id}",
    response_model=SuccessResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Detach a category from a note",
)
async def remove_category_from_note(
    note_id: int,
    category_id: int,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await category_service.remove_category_from_note(db, note_id, category_id)
    return SuccessResponse(success=True)
