"""
User management API endpoints.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status

from auth import dependencies as auth_dependencies
from core.listing import DEFAULT_PAGE_SIZE, Listing, SortOrder, parse_filter

from . import schemas, service

router = APIRouter(dependencies=[Depends(auth_dependencies.get_current_user)])

UserSort = Literal["name", "email", "created_at", "last_login_at"]


@router.get("/users")
async def list_users(
    filter: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, alias="pageSize", ge=1, le=500),
    sort: UserSort = Query(default="name"),
    sort_order: SortOrder = Query(default="asc", alias="sortOrder"),
) -> dict:
    user_filter = parse_filter(filter, schemas.UserFilter)
    listing = Listing(page=page, page_size=page_size, sort=sort, sort_order=sort_order)
    return await service.list_users(search=user_filter.search, listing=listing)


@router.post("/users")
async def create_user(payload: schemas.CreateUserRequest) -> dict:
    return await service.create_user(payload)


@router.get("/users/{user_id}")
async def get_user(user_id: int) -> dict:
    return await service.get_user(user_id)


@router.put("/users/{user_id}")
async def update_user(user_id: int, payload: schemas.UpdateUserRequest) -> dict:
    return await service.update_user(user_id, payload)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int) -> Response:
    await service.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
