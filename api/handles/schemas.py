"""
Pydantic schemas for handle endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from camps.schemas import Name

RELATIONS = frozenset({"camp", "topics", "klout_scores"})


class HandleFilter(BaseModel):
    search: str | None = Field(default=None, max_length=200)
    camp: int | None = None
    topic: int | None = None


class CreateHandleRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, pattern=r"^@?\w+$")
    camp_id: int | None = None


class UpdateHandleRequest(BaseModel):
    name: Name | None = None
    camp_id: int | None = None
