"""
Klout score persistence for the refresh job.
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core import db
from core.klout import KloutScoreSample


async def claim_next_handle() -> dict[str, Any] | None:
    """
    Pick the least recently checked handle that has a Klout id and stamp its check time.

    Never-checked handles come first. The check time is stamped at claim time, so
    a handle whose fetch fails moves to the back of the queue instead of being
    picked again on the next tick. SKIP LOCKED keeps overlapping ticks off the
    same row.
    """
    return await db.fetch_one(
        """
        UPDATE handle
        SET klout_checked_at = now()
        WHERE id = (
          SELECT id
          FROM handle
          WHERE klout_id IS NOT NULL
          ORDER BY klout_checked_at ASC NULLS FIRST, id ASC
          LIMIT 1
          FOR UPDATE SKIP LOCKED
        )
        RETURNING id, username, klout_id
        """
    )


async def record_score(handle_id: int, sample: KloutScoreSample) -> dict[str, Any]:
    """
    Update the cached score and append a score sample in a single transaction.
    """
    pool = db.pool()
    async with pool.acquire() as conn:  # type: asyncpg.Connection
        async with conn.transaction():
            await conn.execute(
                """
                UPDATE handle
                SET klout_score = $2
                WHERE id = $1
                """,
                handle_id,
                sample.score,
            )
            row = await conn.fetchrow(
                """
                INSERT INTO klout_score (handle_id, value, delta_day, delta_week, delta_month)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING id, handle_id, value, delta_day, delta_week, delta_month, created_at
                """,
                handle_id,
                sample.score,
                sample.delta_day,
                sample.delta_week,
                sample.delta_month,
            )
            if row is None:
                raise RuntimeError("Failed to insert klout score.")
            return dict(row)
