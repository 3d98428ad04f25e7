"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


@router.post("/login")
async def login(payload: schemas.LoginRequest) -> schemas.AuthResponse:
    return await service.login(payload)


@router.post("/password")
async def set_password(payload: schemas.SetPasswordRequest) -> schemas.AuthResponse:
    return await service.set_password(payload)


@router.get("/me")
async def me(access_token: str = Depends(dependencies.get_bearer_token)) -> schemas.UserResponse:
    return await service.me(access_token)
