"""
Topic API endpoints.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status

from auth import dependencies as auth_dependencies
from core.listing import DEFAULT_PAGE_SIZE, Listing, SortOrder, parse_filter, parse_related

from . import schemas, service

router = APIRouter(dependencies=[Depends(auth_dependencies.get_current_user)])

TopicSort = Literal["name", "created_at"]


@router.get("/topics")
async def list_topics(
    filter: str | None = Query(default=None),
    related: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, alias="pageSize", ge=1, le=500),
    sort: TopicSort = Query(default="name"),
    sort_order: SortOrder = Query(default="asc", alias="sortOrder"),
) -> list[dict]:
    topic_filter = parse_filter(filter, schemas.TopicFilter)
    relations = parse_related(related, schemas.RELATIONS)
    listing = Listing(page=page, page_size=page_size, sort=sort, sort_order=sort_order)
    return await service.list_topics(search=topic_filter.search, listing=listing, related=relations)


@router.post("/topics")
async def create_topic(payload: schemas.CreateTopicRequest) -> dict:
    return await service.create_topic(payload)


@router.get("/topics/{topic_id}")
async def get_topic(topic_id: int, related: str | None = Query(default=None)) -> dict:
    relations = parse_related(related, schemas.RELATIONS)
    return await service.get_topic(topic_id, related=relations)


@router.put("/topics/{topic_id}")
async def update_topic(topic_id: int, payload: schemas.UpdateTopicRequest) -> dict:
    return await service.update_topic(topic_id, payload)


@router.delete("/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_topic(topic_id: int) -> Response:
    await service.delete_topic(topic_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/topics/{topic_id}/handles")
async def get_topic_handles(topic_id: int) -> list[dict]:
    return await service.topic_handles(topic_id)
