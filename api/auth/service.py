"""
Auth business logic.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from . import repository, schemas, security

logger = logging.getLogger(__name__)


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        email=str(user_row["email"]),
        name=user_row.get("name"),
        last_login_at=user_row.get("last_login_at"),
        created_at=user_row["created_at"],
    )


def _issue_token(user_row: dict) -> schemas.TokenResponse:
    access_token = security.build_access_token(
        user_id=int(user_row["id"]),
        email=str(user_row["email"]),
    )
    return schemas.TokenResponse(access_token=access_token)


async def login(payload: schemas.LoginRequest) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    is_valid = security.verify_password(payload.password, str(user_row.get("password") or ""))
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    await repository.mark_logged_in(int(user_row["id"]))
    logger.info("login user_id=%s", user_row["id"])
    return schemas.AuthResponse(user=_to_user_response(user_row), tokens=_issue_token(user_row))


async def set_password(payload: schemas.SetPasswordRequest) -> schemas.AuthResponse:
    """
    Consume a password-reset token (issued when the user was created).
    """
    token_hash = security.hash_token(payload.token.strip())
    user_row = await repository.consume_password_reset(
        token_hash,
        password_hash=security.hash_password(payload.password),
    )
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or used password token.",
        )
    logger.info("password_set user_id=%s", user_row["id"])
    return schemas.AuthResponse(user=_to_user_response(user_row), tokens=_issue_token(user_row))


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        user_id = security.access_token_user_id(access_token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    user_row = await repository.get_user_by_id(user_id)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )
    return user_row


async def me(access_token: str) -> schemas.UserResponse:
    user_row = await get_user_from_access_token(access_token)
    return _to_user_response(user_row)
