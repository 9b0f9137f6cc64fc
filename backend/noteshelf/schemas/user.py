"""
NoteShelf Backend — Authentication Schemas
============================================

What:  Request bodies for register/login and the outward user representation.
Security:
    UserResponse has no password field, so a hash can never be serialized
    into a response even if a route returns the ORM object directly.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from noteshelf.models.user import USERNAME_MAX_LENGTH


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    password: str = Field(min_length=1, max_length=256)
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, max_length=255)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("username cannot be blank")
        if any(ch.isspace() for ch in v):
            raise ValueError("username cannot contain whitespace")
        return v


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    user: UserResponse


class LoginResponse(BaseModel):
    message: str = "Login successful"
    user: UserResponse
    token: str
