"""
User persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core import db
from core.listing import Listing, order_by_clause

USER_COLUMNS = "id, email, name, last_login_at, created_at, updated_at"

SORT_COLUMNS = {
    "name": "name",
    "email": "email",
    "created_at": "created_at",
    "last_login_at": "last_login_at",
}

UPDATABLE_COLUMNS = frozenset({"name", "email"})


def _search_arg(search: str | None) -> str:
    return (search or "").strip().lower()


async def list_users(*, search: str | None, listing: Listing) -> list[dict[str, Any]]:
    order_by = order_by_clause(listing.sort, listing.sort_order, columns=SORT_COLUMNS)
    return await db.fetch_all(
        f"""
        SELECT {USER_COLUMNS}
        FROM "user"
        WHERE $1 = ''
           OR lower(coalesce(name, '')) LIKE ('%' || $1 || '%')
           OR lower(email) LIKE ('%' || $1 || '%')
        {order_by}
        LIMIT $2
        OFFSET $3
        """,
        _search_arg(search),
        listing.limit,
        listing.offset,
    )


async def count_users(*, search: str | None) -> int:
    value = await db.fetch_val(
        """
        SELECT count(*)
        FROM "user"
        WHERE $1 = ''
           OR lower(coalesce(name, '')) LIKE ('%' || $1 || '%')
           OR lower(email) LIKE ('%' || $1 || '%')
        """,
        _search_arg(search),
    )
    return int(value or 0)


async def get_user(user_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM "user"
        WHERE id = $1
        """,
        user_id,
    )


async def email_in_use(email: str, *, exclude_user_id: int | None = None) -> bool:
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM "user"
        WHERE lower(email) = lower($1)
          AND ($2::int IS NULL OR id <> $2)
        LIMIT 1
        """,
        email,
        exclude_user_id,
    )
    return row is not None


async def create_user(
    *,
    email: str,
    name: str | None,
    password_hash: str,
    password_reset: str,
) -> dict[str, Any] | None:
    """
    Insert a user. Returns None when the email is already taken.
    """
    try:
        row = await db.fetch_one(
            f"""
            INSERT INTO "user" (email, name, password, password_reset)
            VALUES ($1, $2, $3, $4)
            RETURNING {USER_COLUMNS}
            """,
            email,
            name,
            password_hash,
            password_reset,
        )
    except asyncpg.UniqueViolationError:
        return None
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def update_user(user_id: int, values: dict[str, Any]) -> dict[str, Any] | None:
    """
    Returns None when the user is gone or the new email is already taken.
    """
    values = {k: v for k, v in values.items() if k in UPDATABLE_COLUMNS}
    if not values:
        return await get_user(user_id)

    assignments, args = db.set_clause(values, start=2)
    try:
        return await db.fetch_one(
            f"""
            UPDATE "user"
            SET {assignments}
            WHERE id = $1
            RETURNING {USER_COLUMNS}
            """,
            user_id,
            *args,
        )
    except asyncpg.UniqueViolationError:
        return None


async def delete_user(user_id: int) -> bool:
    status = await db.execute('DELETE FROM "user" WHERE id = $1', user_id)
    return db.affected_rows(status) > 0
