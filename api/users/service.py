"""
User management business logic.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import HTTPException, status

from auth import security
from core import config
from core.listing import Listing

from . import repository, schemas

logger = logging.getLogger(__name__)


async def list_users(*, search: str | None, listing: Listing) -> dict:
    users = await repository.list_users(search=search, listing=listing)
    count = await repository.count_users(search=search)
    return {"users": users, "count": count}


async def get_user(user_id: int) -> dict:
    user = await repository.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _set_password_url(token: str) -> str:
    return f"{config.front_uri()}/set-password?{urlencode({'token': token})}"


async def create_user(payload: schemas.CreateUserRequest) -> dict:
    email = str(payload.email).strip().lower()
    if await repository.email_in_use(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use.")

    # Random, never-disclosed initial password; the user sets a real one with the reset token.
    initial_secret, _ = security.generate_token_hash()
    reset_token, reset_hash = security.generate_token_hash()

    user = await repository.create_user(
        email=email,
        name=payload.name,
        password_hash=security.hash_password(initial_secret),
        password_reset=reset_hash,
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use.")
    logger.info("user_created user_id=%s", user["id"])
    return {**user, "set_password_url": _set_password_url(reset_token)}


async def update_user(user_id: int, payload: schemas.UpdateUserRequest) -> dict:
    await get_user(user_id)

    values = payload.model_dump(exclude_unset=True)
    if "email" in values:
        if values["email"] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email cannot be empty.")
        values["email"] = str(values["email"]).strip().lower()
        if await repository.email_in_use(values["email"], exclude_user_id=user_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use.")

    user = await repository.update_user(user_id, values)
    if user is None:
        # Either the row was deleted meanwhile or a concurrent write took the email.
        await get_user(user_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use.")
    return user


async def delete_user(user_id: int) -> None:
    if not await repository.delete_user(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    logger.info("user_deleted user_id=%s", user_id)
