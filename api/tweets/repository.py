"""
Tweet persistence (raw SQL).

Tweet ids are upstream status ids stored as text; ordering and `maxId`
comparisons cast them to numeric.
"""

from __future__ import annotations

from typing import Any

from core import db
from core.listing import order_by_clause

TWEET_COLUMNS = "t.id, t.handle_id, t.parent_id, t.text, t.data, t.retweeted, t.favorited, t.created_at"

SORT_COLUMNS = {
    "id": "t.id::numeric",
    "created_at": "t.created_at",
}


async def list_tweets(
    *,
    max_id: str | None,
    handle_uid: int | None,
    topic_id: int | None,
    limit: int,
    sort_by: str,
    sort_order: str,
) -> list[dict[str, Any]]:
    order_by = order_by_clause(sort_by, sort_order, columns=SORT_COLUMNS, tiebreak="t.id")
    return await db.fetch_all(
        f"""
        SELECT {TWEET_COLUMNS}
        FROM tweet t
        LEFT JOIN handle h ON h.id = t.handle_id
        WHERE ($1::text IS NULL OR t.id::numeric <= $1::numeric)
          AND ($2::bigint IS NULL OR h.uid = $2)
          AND (
            $3::int IS NULL
            OR EXISTS (
              SELECT 1 FROM handle_topic ht
              WHERE ht.handle_id = t.handle_id AND ht.topic_id = $3
            )
          )
        {order_by}
        LIMIT $4
        """,
        max_id,
        handle_uid,
        topic_id,
        limit,
    )


async def get_tweet(tweet_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(f"SELECT {TWEET_COLUMNS} FROM tweet t WHERE t.id = $1", tweet_id)


async def list_replies(tweet_id: str) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {TWEET_COLUMNS}
        FROM tweet t
        WHERE t.parent_id = $1
        ORDER BY t.id::numeric ASC
        """,
        tweet_id,
    )


async def set_flags(
    tweet_id: str,
    *,
    retweeted: bool | None = None,
    favorited: bool | None = None,
) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        UPDATE tweet
        SET retweeted = coalesce($2, retweeted),
            favorited = coalesce($3, favorited)
        WHERE id = $1
        RETURNING id, handle_id, parent_id, text, data, retweeted, favorited, created_at
        """,
        tweet_id,
        retweeted,
        favorited,
    )


async def delete_tweet(tweet_id: str) -> bool:
    status = await db.execute("DELETE FROM tweet WHERE id = $1", tweet_id)
    return db.affected_rows(status) > 0
