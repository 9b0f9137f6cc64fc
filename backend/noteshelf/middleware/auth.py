"""
NoteShelf Backend — Access Control
====================================

What:  Extracts and verifies `Authorization: Bearer <token>` per request.
Why:   Routes declare their policy in the signature instead of re-parsing headers.
How:   Two FastAPI dependencies over the same extraction logic:

       require_user   any failure → AuthenticationError (401), handler never runs
       optional_user  any failure → None, request continues anonymously

       On success the caller identity is also stored on `request.state.user`
       so middleware and logging can see who made the call.

Route policy (one rule per route group):
    none      POST /api/auth/register, POST /api/auth/login, GET /health
    optional  GET /api/notes, GET /api/categories, GET /api/categories/{id}
    required  everything else

Note authorization:
    Any authenticated user may read or modify any note. The creator id is
    recorded on the note but is not compared against the caller.
"""

import logging
from typing import Optional

from fastapi import Depends, Request

from noteshelf.exceptions import AuthenticationError
from noteshelf.security import AuthService, TokenClaims, get_auth_service

logger = logging.getLogger(__name__)

CurrentUser = TokenClaims


def extract_bearer_token(request: Request) -> str:
    """
    Returns the raw token from a well-formed `Bearer <token>` header.

    Raises:
        AuthenticationError: header missing, wrong scheme, or empty token
    """
    header = request.headers.get("Authorization")
    if not header:
        raise AuthenticationError("Authentication required")

    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return parts[1]


async def require_user(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """Required policy: 401 unless a valid token is presented."""
    token = extract_bearer_token(request)
    user = auth.verify_token(token)
    request.state.user = user
    return user


async def optional_user(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> Optional[CurrentUser]:
    """Optional policy: identity when available, never an error."""
    try:
        token = extract_bearer_token(request)
        user = auth.verify_token(token)
    except AuthenticationError as e:
        if request.headers.get("Authorization"):
            logger.debug("Ignoring unusable credentials on optional route: %s", e.message)
        request.state.user = None
        return None

    request.state.user = user
    return user
