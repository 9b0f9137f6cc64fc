"""
NoteShelf Backend — Authentication Route Handlers
===================================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me.
Why:   Issues the bearer tokens every protected route requires.

Failed logins are answered with 401 every time; there is no lockout or
backoff after repeated failures.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from noteshelf.database import get_db_session
from noteshelf.exceptions import AuthenticationError, NotFoundError
from noteshelf.middleware.auth import CurrentUser, require_user
from noteshelf.schemas.note import ErrorResponse
from noteshelf.schemas.user import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from noteshelf.security import AuthService, get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=201,
    responses={400: {"description": "Invalid input or duplicate username/email", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    user = await auth.create_user(
        db,
        username=payload.username,
        password=payload.password,
        email=payload.email,
        name=payload.name,
    )
    return RegisterResponse(user=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"description": "Bad credentials", "model": ErrorResponse}},
    summary="Exchange username/password for a bearer token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    user = await auth.validate_credentials(db, payload.username, payload.password)
    if user is None:
        raise AuthenticationError("Invalid username or password")

    return LoginResponse(
        user=UserResponse.model_validate(user),
        token=auth.issue_token(user),
    )


@router.get(
    "/me",
    response_model=UserResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Account no longer exists", "model": ErrorResponse},
    },
    summary="Profile of the authenticated caller",
)
async def me(
    current: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
):
    user = await auth.get_user(db, current.id)
    if user is None:
        raise NotFoundError(resource="user", resource_id=current.id)
    return user
