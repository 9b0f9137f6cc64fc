"""
NoteShelf Backend — Pydantic Request/Response Schemas for Notes
=================================================================

What:  Pydantic models defining the notes API contract.
Why:   Strict input validation, automatic serialization, and OpenAPI doc generation.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate Swagger/OpenAPI documentation automatically.

Wire format:
    Fields are camelCase on the wire (createdAt, updatedAt, userId) through
    an alias generator; request bodies accept either spelling.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from noteshelf.models.note import NOTE_TITLE_MAX_LENGTH
from noteshelf.schemas.category import CategoryResponse


class CamelModel(BaseModel):
    """Shared config: camelCase aliases, ORM attribute loading."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _reject_blank(value: Optional[str], field: str) -> Optional[str]:
    if value is None:
        raise ValueError(f"{field} cannot be null")
    if not value.strip():
        raise ValueError(f"{field} cannot be blank")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(CamelModel):
    """
    What:  Body of POST /api/notes.
    Rules: title 1-100 chars, content non-empty, archived defaults to false.
    """
    title: str = Field(min_length=1, max_length=NOTE_TITLE_MAX_LENGTH)
    content: str = Field(min_length=1)
    archived: bool = False

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str, info: ValidationInfo) -> str:
        return _reject_blank(v, info.field_name)


class NoteUpdate(CamelModel):
    """
    What:  Body of PUT /api/notes/{id} — partial update.

    Omitted fields keep their stored value. Explicit nulls are rejected
    because every column is NOT NULL.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=NOTE_TITLE_MAX_LENGTH)
    content: Optional[str] = Field(default=None, min_length=1)
    archived: Optional[bool] = None

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        return _reject_blank(v, info.field_name)

    @field_validator("archived")
    @classmethod
    def not_null(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("archived cannot be null")
        return v

    def changes(self) -> dict:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(CamelModel):
    """Full representation of a note."""
    id: int
    title: str
    content: str
    archived: bool
    user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class NoteWithCategoriesResponse(NoteResponse):
    """
    What:  Note plus its categories as a flat array.
    Who:   GET /api/notes?includeCategories=true.
    """
    categories: List[CategoryResponse] = Field(default_factory=list)


class SuccessResponse(BaseModel):
    """Acknowledgement body for deletes and tag changes."""
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
