"""
Pydantic schemas for topic endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from camps.schemas import Name

RELATIONS = frozenset({"handles"})


class TopicFilter(BaseModel):
    search: str | None = Field(default=None, max_length=200)


class CreateTopicRequest(BaseModel):
    name: Name
    description: str | None = Field(default=None, max_length=255)
    keywords: list[str] = Field(default_factory=list)


class UpdateTopicRequest(BaseModel):
    name: Name | None = None
    description: str | None = Field(default=None, max_length=255)
    keywords: list[str] | None = None
