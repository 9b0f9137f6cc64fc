"""
NoteShelf Backend — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Each failure class maps to exactly one HTTP status, so validation
       failures, missing records, and system faults are never conflated.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and access-control dependencies; caught by global handlers.

Exception Hierarchy:
    NoteShelfError (base)
    ├── ValidationError       → 400 Bad Request (client can fix)
    ├── ConflictError         → 400 Bad Request (duplicate username/email/category)
    ├── AuthenticationError   → 401 Unauthorized
    ├── NotFoundError         → 404 Not Found
    └── DatabaseError         → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class NoteShelfError(Exception):
    """
    Base exception for all NoteShelf application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client on 5xx)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteShelfError):
    """
    Raised when client input fails validation.

    When:    Blank title, oversize category name, username with whitespace.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(NoteShelfError):
    """
    Raised when a uniqueness rule would be violated.

    When:    Username, email, or category name already taken.
    HTTP:    400 Bad Request (the client API has always reported duplicates as 400)
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(NoteShelfError):
    """
    Raised when a request cannot be tied to a valid identity.

    When:    Missing/malformed Authorization header, bad signature, expired token.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(NoteShelfError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records (not an exception).
    Services convert None → NotFoundError so routes stay free of checks.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        if resource_id is not None:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.resource = resource


class DatabaseError(NoteShelfError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, database unreachable, deadlock.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Detailed error
    info is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
