"""
Pydantic schemas for user endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class UserFilter(BaseModel):
    search: str | None = Field(default=None, max_length=200)


class CreateUserRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    email: EmailStr


class UpdateUserRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None
