"""
Topic persistence (raw SQL).
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from core import db
from core.listing import Listing, order_by_clause

TOPIC_COLUMNS = "t.id, t.name, t.description, t.keywords, t.created_at, t.updated_at"

SORT_COLUMNS = {
    "name": "t.name",
    "created_at": "t.created_at",
}

UPDATABLE_COLUMNS = frozenset({"name", "description", "keywords"})


async def list_topics(*, search: str | None, listing: Listing) -> list[dict[str, Any]]:
    order_by = order_by_clause(listing.sort, listing.sort_order, columns=SORT_COLUMNS, tiebreak="t.id")
    return await db.fetch_all(
        f"""
        SELECT {TOPIC_COLUMNS}
        FROM topic t
        WHERE $1 = ''
           OR lower(t.name) LIKE ('%' || $1 || '%')
           OR lower(coalesce(t.description, '')) LIKE ('%' || $1 || '%')
        {order_by}
        LIMIT $2
        OFFSET $3
        """,
        (search or "").strip().lower(),
        listing.limit,
        listing.offset,
    )


async def get_topic(topic_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(f"SELECT {TOPIC_COLUMNS} FROM topic t WHERE t.id = $1", topic_id)


async def create_topic(*, name: str, description: str | None, keywords: list[str]) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO topic (name, description, keywords)
        VALUES ($1, $2, $3::jsonb)
        RETURNING id, name, description, keywords, created_at, updated_at
        """,
        name,
        description,
        db.json_arg(keywords),
    )
    if row is None:
        raise RuntimeError("Failed to create topic.")
    return row


async def update_topic(topic_id: int, values: dict[str, Any]) -> dict[str, Any] | None:
    values = {k: v for k, v in values.items() if k in UPDATABLE_COLUMNS}
    if not values:
        return await get_topic(topic_id)
    if "keywords" in values:
        values["keywords"] = db.json_arg(values["keywords"] or [])

    assignments, args = db.set_clause(values, start=2)
    return await db.fetch_one(
        f"""
        UPDATE topic
        SET {assignments}
        WHERE id = $1
        RETURNING id, name, description, keywords, created_at, updated_at
        """,
        topic_id,
        *args,
    )


async def delete_topic(topic_id: int) -> bool:
    status = await db.execute("DELETE FROM topic WHERE id = $1", topic_id)
    return db.affected_rows(status) > 0


async def list_handles_for_topics(topic_ids: list[int]) -> dict[int, list[dict[str, Any]]]:
    """
    Map topic id -> tagged handles (ordered by tag time, then handle id).
    """
    grouped: dict[int, list[dict[str, Any]]] = defaultdict(list)
    if not topic_ids:
        return grouped

    rows = await db.fetch_all(
        """
        SELECT ht.topic_id, h.id, h.uid, h.username, h.name, h.camp_id,
               h.klout_score, h.created_at, h.updated_at
        FROM handle_topic ht
        JOIN handle h ON h.id = ht.handle_id
        WHERE ht.topic_id = ANY($1::int[])
        ORDER BY ht.topic_id, ht.id, h.id
        """,
        topic_ids,
    )
    for row in rows:
        topic_id = int(row.pop("topic_id"))
        grouped[topic_id].append(row)
    return grouped
