"""
NoteShelf Backend — Credential Store
======================================

What:  Password hashing, bearer token issuance/verification, and the account
       operations built on them (register, credential check, profile lookup).
Why:   Keeps every secret-handling rule in one module.
How:   Two small config-carrying objects, composed into AuthService:

       PasswordHasher  passlib CryptContext (bcrypt, cost from settings)
       TokenService    python-jose HS256 JWT, 24h lifetime from settings

       AuthService is built from settings once and handed to routes through
       the `get_auth_service` dependency, which tests override to inject
       cheaper hash rounds or a different signing key.

Token claims:
    {"sub": "<user id>", "id": <user id>, "username": "...", "iat": ..., "exp": ...}

    There is no revocation list: a token stays valid until `exp` even after
    the client logs out.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from noteshelf.config import settings
from noteshelf.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    ValidationError,
)
from noteshelf.models.user import USERNAME_MAX_LENGTH, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    """Identity decoded from a verified bearer token."""
    id: int
    username: str


class PasswordHasher:
    """bcrypt via passlib; `rounds` is the adaptive cost factor."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Constant-time comparison through passlib.

        A stored value that is not a recognizable hash counts as a mismatch.
        """
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            logger.warning("Stored password hash could not be parsed")
            return False


class TokenService:
    """Signs and verifies time-limited HS256 bearer tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_in: timedelta = timedelta(hours=24)):
        self._secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    def issue(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        claims: Dict[str, Any] = {
            "sub": str(user.id),
            "id": user.id,
            "username": user.username,
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Validates signature and expiry.

        Raises:
            AuthenticationError: expired, tampered, or structurally invalid token
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except JWTError:
            raise AuthenticationError("Invalid or expired token")

        user_id = payload.get("id")
        username = payload.get("username")
        if not isinstance(user_id, int) or not isinstance(username, str):
            raise AuthenticationError("Invalid or expired token")
        return TokenClaims(id=user_id, username=username)


class AuthService:
    """
    Account operations on top of the hasher and token service.

    Responsibilities:
        - create_user(): registration with uniqueness checks
        - validate_credentials(): login check, None on any mismatch
        - issue_token() / verify_token(): bearer token lifecycle
        - get_user(): profile lookup for /api/auth/me

    bcrypt work runs in the thread pool so a login never stalls other requests.
    """

    def __init__(self, hasher: PasswordHasher, tokens: TokenService):
        self.hasher = hasher
        self.tokens = tokens

    @classmethod
    def from_settings(cls) -> "AuthService":
        return cls(
            hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
            tokens=TokenService(
                secret=settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
                expires_in=timedelta(hours=settings.jwt_expire_hours),
            ),
        )

    async def create_user(
        self,
        db: AsyncSession,
        username: str,
        password: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> User:
        """
        Register a new account.

        Raises:
            ValidationError: blank username, whitespace in username, empty password
            ConflictError: username or email already taken
            DatabaseError: persistence failure
        """
        if not username or not username.strip():
            raise ValidationError("Username and password are required", field="username")
        if any(ch.isspace() for ch in username):
            raise ValidationError("Username cannot contain whitespace", field="username")
        if len(username) > USERNAME_MAX_LENGTH:
            raise ValidationError(
                f"Username must be at most {USERNAME_MAX_LENGTH} characters", field="username"
            )
        if not password:
            raise ValidationError("Username and password are required", field="password")

        try:
            existing = await db.execute(select(User.id).where(User.username == username))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError("Username already exists", field="username")

            if email:
                existing = await db.execute(select(User.id).where(User.email == email))
                if existing.scalar_one_or_none() is not None:
                    raise ConflictError("Email already in use", field="email")

            password_hash = await run_in_threadpool(self.hasher.hash, password)
            user = User(
                username=username,
                password_hash=password_hash,
                email=email or None,
                name=name,
            )
            db.add(user)
            await db.flush()
            await db.refresh(user)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same name/email
            raise ConflictError("Username or email already exists")
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to register user",
                context={"error_type": type(e).__name__},
            )

        logger.info("Registered user %s (id=%s)", user.username, user.id)
        return user

    async def validate_credentials(
        self, db: AsyncSession, username: str, password: str
    ) -> Optional[User]:
        """Returns the user when the password matches, otherwise None."""
        try:
            result = await db.execute(select(User).where(User.username == username))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user: %s", str(e), exc_info=True)
            raise DatabaseError(message="Login failed", context={"error_type": type(e).__name__})

        if user is None:
            logger.info("Login rejected: unknown username")
            return None

        if not await run_in_threadpool(self.hasher.verify, password, user.password_hash):
            logger.info("Login rejected: bad password for user id=%s", user.id)
            return None

        return user

    async def get_user(self, db: AsyncSession, user_id: int) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Failed to fetch user profile",
                context={"user_id": user_id},
            )

    def issue_token(self, user: User) -> str:
        return self.tokens.issue(user)

    def verify_token(self, token: str) -> TokenClaims:
        return self.tokens.verify(token)


@lru_cache()
def get_auth_service() -> AuthService:
    """FastAPI dependency; one AuthService per process unless overridden."""
    return AuthService.from_settings()
