"""
Camp persistence (raw SQL).

Deleting a camp leaves its handles in place: the FK is ON DELETE SET NULL.
"""

from __future__ import annotations

from typing import Any

from core import db

CAMP_COLUMNS = "id, name, description, created_at, updated_at"


async def list_camps() -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {CAMP_COLUMNS}
        FROM camp
        ORDER BY name ASC, id ASC
        """
    )


async def get_camp(camp_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(f"SELECT {CAMP_COLUMNS} FROM camp WHERE id = $1", camp_id)


async def get_camps_by_ids(camp_ids: list[int]) -> list[dict[str, Any]]:
    if not camp_ids:
        return []
    return await db.fetch_all(
        f"SELECT {CAMP_COLUMNS} FROM camp WHERE id = ANY($1::int[])",
        camp_ids,
    )


async def create_camp(*, name: str, description: str | None) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO camp (name, description)
        VALUES ($1, $2)
        RETURNING {CAMP_COLUMNS}
        """,
        name,
        description,
    )
    if row is None:
        raise RuntimeError("Failed to create camp.")
    return row


async def delete_camp(camp_id: int) -> bool:
    status = await db.execute("DELETE FROM camp WHERE id = $1", camp_id)
    return db.affected_rows(status) > 0
