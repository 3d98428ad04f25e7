"""
Pydantic schemas for camp endpoints.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

# Whitespace is stripped before the length check, so "   " is rejected.
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class CreateCampRequest(BaseModel):
    name: Name
    description: str | None = Field(default=None, max_length=255)
