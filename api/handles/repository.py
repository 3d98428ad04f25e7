"""
Handle persistence (raw SQL), including the handle_topic join table.

Nothing here raises for "missing" or "duplicate": reads return None/empty,
writes return None/False or a `RelationChange` member, and the service layer
maps those to HTTP responses.
"""

from __future__ import annotations

import enum
from collections import defaultdict
from typing import Any

import asyncpg

from core import db
from core.listing import Listing, order_by_clause

HANDLE_COLUMNS = (
    "h.id, h.uid, h.username, h.name, h.profile, h.camp_id, "
    "h.klout_id, h.klout_score, h.klout_checked_at, h.created_at, h.updated_at"
)

SORT_COLUMNS = {
    "name": "h.name",
    "username": "h.username",
    "created_at": "h.created_at",
    "klout_score": "h.klout_score",
}

UPDATABLE_COLUMNS = frozenset({"name", "camp_id"})

SCORES_PER_HANDLE = 30


class RelationChange(enum.Enum):
    ATTACHED = "attached"
    ALREADY_ATTACHED = "already_attached"
    DETACHED = "detached"
    NOT_ATTACHED = "not_attached"
    MISSING = "missing"


async def list_handles(
    *,
    search: str | None,
    camp_id: int | None,
    topic_id: int | None,
    listing: Listing,
) -> list[dict[str, Any]]:
    order_by = order_by_clause(listing.sort, listing.sort_order, columns=SORT_COLUMNS, tiebreak="h.id")
    return await db.fetch_all(
        f"""
        SELECT {HANDLE_COLUMNS}
        FROM handle h
        WHERE (
            $1 = ''
            OR lower(h.username) LIKE ('%' || $1 || '%')
            OR lower(h.name) LIKE ('%' || $1 || '%')
          )
          AND ($2::int IS NULL OR h.camp_id = $2)
          AND (
            $3::int IS NULL
            OR EXISTS (
              SELECT 1 FROM handle_topic ht
              WHERE ht.handle_id = h.id AND ht.topic_id = $3
            )
          )
        {order_by}
        LIMIT $4
        OFFSET $5
        """,
        (search or "").strip().lower(),
        camp_id,
        topic_id,
        listing.limit,
        listing.offset,
    )


async def get_handle(handle_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"SELECT {HANDLE_COLUMNS} FROM handle h WHERE h.id = $1",
        handle_id,
    )


async def get_handles_by_ids(handle_ids: list[int]) -> list[dict[str, Any]]:
    if not handle_ids:
        return []
    return await db.fetch_all(
        f"SELECT {HANDLE_COLUMNS} FROM handle h WHERE h.id = ANY($1::int[])",
        handle_ids,
    )


async def handle_exists(*, username: str | None = None, uid: int | None = None) -> bool:
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM handle
        WHERE lower(username) = lower($1)
           OR uid = $2
        LIMIT 1
        """,
        username or "",
        uid,
    )
    return row is not None


async def create_handle(
    *,
    uid: int,
    username: str,
    name: str,
    profile: dict[str, Any],
    camp_id: int | None,
    klout_id: str | None,
) -> dict[str, Any] | None:
    """
    Insert a handle. Returns None when username/uid is already taken.
    """
    try:
        row = await db.fetch_one(
            """
            INSERT INTO handle (uid, username, name, profile, camp_id, klout_id)
            VALUES ($1, $2, $3, $4::jsonb, $5, $6)
            RETURNING id
            """,
            uid,
            username,
            name,
            db.json_arg(profile),
            camp_id,
            klout_id,
        )
    except asyncpg.UniqueViolationError:
        return None
    if row is None:
        raise RuntimeError("Failed to create handle.")
    return await get_handle(int(row["id"]))


async def update_handle(handle_id: int, values: dict[str, Any]) -> dict[str, Any] | None:
    values = {k: v for k, v in values.items() if k in UPDATABLE_COLUMNS}
    if not values:
        return await get_handle(handle_id)

    assignments, args = db.set_clause(values, start=2)
    row = await db.fetch_one(
        f"""
        UPDATE handle
        SET {assignments}
        WHERE id = $1
        RETURNING id
        """,
        handle_id,
        *args,
    )
    if row is None:
        return None
    return await get_handle(handle_id)


async def delete_handle(handle_id: int) -> bool:
    # handle_topic, klout_score and tweet rows go with it (ON DELETE CASCADE).
    status = await db.execute("DELETE FROM handle WHERE id = $1", handle_id)
    return db.affected_rows(status) > 0


async def list_topics_for_handles(handle_ids: list[int]) -> dict[int, list[dict[str, Any]]]:
    """
    Map handle id -> attached topics (ordered by attach time, then topic id).
    """
    grouped: dict[int, list[dict[str, Any]]] = defaultdict(list)
    if not handle_ids:
        return grouped

    rows = await db.fetch_all(
        """
        SELECT ht.handle_id, t.id, t.name, t.description, t.keywords, t.created_at, t.updated_at
        FROM handle_topic ht
        JOIN topic t ON t.id = ht.topic_id
        WHERE ht.handle_id = ANY($1::int[])
        ORDER BY ht.handle_id, ht.id, t.id
        """,
        handle_ids,
    )
    for row in rows:
        handle_id = int(row.pop("handle_id"))
        grouped[handle_id].append(row)
    return grouped


async def list_scores_for_handles(
    handle_ids: list[int],
    *,
    limit: int = SCORES_PER_HANDLE,
) -> dict[int, list[dict[str, Any]]]:
    """
    Map handle id -> most recent score samples, newest first.
    """
    grouped: dict[int, list[dict[str, Any]]] = defaultdict(list)
    if not handle_ids:
        return grouped

    rows = await db.fetch_all(
        """
        SELECT id, handle_id, value, delta_day, delta_week, delta_month, created_at
        FROM (
          SELECT ks.*,
                 row_number() OVER (PARTITION BY ks.handle_id ORDER BY ks.created_at DESC, ks.id DESC) AS rn
          FROM klout_score ks
          WHERE ks.handle_id = ANY($1::int[])
        ) ranked
        WHERE rn <= $2
        ORDER BY handle_id, created_at DESC, id DESC
        """,
        handle_ids,
        limit,
    )
    for row in rows:
        grouped[int(row["handle_id"])].append(row)
    return grouped


async def attach_topic(handle_id: int, topic_id: int) -> RelationChange:
    try:
        row = await db.fetch_one(
            """
            INSERT INTO handle_topic (handle_id, topic_id)
            VALUES ($1, $2)
            ON CONFLICT (handle_id, topic_id) DO NOTHING
            RETURNING id
            """,
            handle_id,
            topic_id,
        )
    except asyncpg.ForeignKeyViolationError:
        return RelationChange.MISSING
    return RelationChange.ATTACHED if row is not None else RelationChange.ALREADY_ATTACHED


async def detach_topic(handle_id: int, topic_id: int) -> RelationChange:
    status = await db.execute(
        """
        DELETE FROM handle_topic
        WHERE handle_id = $1
          AND topic_id = $2
        """,
        handle_id,
        topic_id,
    )
    return RelationChange.DETACHED if db.affected_rows(status) > 0 else RelationChange.NOT_ATTACHED
