"""
Auth persistence helpers (password and login columns of the "user" table).
"""

from __future__ import annotations

from core import db


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, email, name, password, last_login_at, created_at, updated_at
        FROM "user"
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: int) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, email, name, last_login_at, created_at, updated_at
        FROM "user"
        WHERE id = $1
        """,
        user_id,
    )


async def consume_password_reset(token_hash: str, *, password_hash: str) -> dict | None:
    """
    Set the password of the user holding this reset token and clear the token.

    One statement, so a token can only be used once even under concurrent
    requests. Returns None when no user holds the token.
    """
    return await db.fetch_one(
        """
        UPDATE "user"
        SET password = $2,
            password_reset = NULL,
            updated_at = now()
        WHERE password_reset = $1
        RETURNING id, email, name, last_login_at, created_at, updated_at
        """,
        token_hash,
        password_hash,
    )


async def mark_logged_in(user_id: int) -> None:
    await db.execute(
        """
        UPDATE "user"
        SET last_login_at = now()
        WHERE id = $1
        """,
        user_id,
    )
