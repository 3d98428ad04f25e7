"""
Handle API endpoints.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status

from auth import dependencies as auth_dependencies
from core.adapters import get_klout_client, get_twitter_client
from core.klout import KloutClient
from core.listing import DEFAULT_PAGE_SIZE, Listing, SortOrder, parse_filter, parse_related
from core.twitter import TwitterClient

from . import schemas, service

router = APIRouter(dependencies=[Depends(auth_dependencies.get_current_user)])

HandleSort = Literal["name", "username", "created_at", "klout_score"]


@router.get("/handles")
async def list_handles(
    filter: str | None = Query(default=None),
    related: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, alias="pageSize", ge=1, le=500),
    sort: HandleSort = Query(default="name"),
    sort_order: SortOrder = Query(default="asc", alias="sortOrder"),
) -> list[dict]:
    """
    List handles, e.g. /handles?filter={"camp":1,"topic":2}&related=["topics"]&sort=klout_score&sortOrder=desc
    """
    handle_filter = parse_filter(filter, schemas.HandleFilter)
    relations = parse_related(related, schemas.RELATIONS)
    listing = Listing(page=page, page_size=page_size, sort=sort, sort_order=sort_order)
    return await service.list_handles(handle_filter=handle_filter, listing=listing, related=relations)


@router.post("/handles")
async def create_handle(
    payload: schemas.CreateHandleRequest,
    twitter: TwitterClient = Depends(get_twitter_client),
    klout: KloutClient = Depends(get_klout_client),
) -> dict:
    return await service.create_handle(payload, twitter=twitter, klout=klout)


@router.get("/handles/{handle_id}")
async def get_handle(handle_id: int, related: str | None = Query(default=None)) -> dict:
    relations = parse_related(related, schemas.RELATIONS)
    return await service.get_handle(handle_id, related=relations)


@router.put("/handles/{handle_id}")
async def update_handle(handle_id: int, payload: schemas.UpdateHandleRequest) -> dict:
    return await service.update_handle(handle_id, payload)


@router.delete("/handles/{handle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_handle(handle_id: int) -> Response:
    await service.delete_handle(handle_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/handles/{handle_id}/topics")
async def get_handle_topics(handle_id: int) -> list[dict]:
    return await service.handle_topics(handle_id)


@router.get("/handles/{handle_id}/scores")
async def get_handle_scores(handle_id: int) -> list[dict]:
    return await service.handle_scores(handle_id)


@router.post("/handles/{handle_id}/topics/{topic_id}")
async def attach_topic(handle_id: int, topic_id: int) -> dict:
    return await service.attach_topic(handle_id, topic_id)


@router.delete("/handles/{handle_id}/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def detach_topic(handle_id: int, topic_id: int) -> Response:
    await service.detach_topic(handle_id, topic_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
