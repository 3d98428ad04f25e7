"""
Topic business logic.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, status

from core.listing import Listing

from . import repository, schemas

logger = logging.getLogger(__name__)


def _clean_keywords(keywords: list[str]) -> list[str]:
    cleaned: list[str] = []
    for keyword in keywords:
        keyword = keyword.strip()
        if keyword and keyword not in cleaned:
            cleaned.append(keyword)
    return cleaned


async def expand_relations(topics: list[dict[str, Any]], related: list[str]) -> list[dict[str, Any]]:
    if topics and "handles" in related:
        handles = await repository.list_handles_for_topics([int(t["id"]) for t in topics])
        for topic in topics:
            topic["handles"] = handles.get(int(topic["id"]), [])
    return topics


async def list_topics(*, search: str | None, listing: Listing, related: list[str]) -> list[dict[str, Any]]:
    rows = await repository.list_topics(search=search, listing=listing)
    return await expand_relations(rows, related)


async def get_topic(topic_id: int, *, related: list[str]) -> dict[str, Any]:
    topic = await repository.get_topic(topic_id)
    if topic is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Topic not found")
    (expanded,) = await expand_relations([topic], related)
    return expanded


async def create_topic(payload: schemas.CreateTopicRequest) -> dict[str, Any]:
    topic = await repository.create_topic(
        name=payload.name,
        description=payload.description,
        keywords=_clean_keywords(payload.keywords),
    )
    logger.info("topic_created topic_id=%s", topic["id"])
    return topic


async def update_topic(topic_id: int, payload: schemas.UpdateTopicRequest) -> dict[str, Any]:
    values = payload.model_dump(exclude_unset=True)
    if "name" in values and values["name"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name cannot be empty.")
    if values.get("keywords") is not None:
        values["keywords"] = _clean_keywords(values["keywords"])

    topic = await repository.update_topic(topic_id, values)
    if topic is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Topic not found")
    return topic


async def delete_topic(topic_id: int) -> None:
    if not await repository.delete_topic(topic_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Topic not found")
    logger.info("topic_deleted topic_id=%s", topic_id)


async def topic_handles(topic_id: int) -> list[dict[str, Any]]:
    topic = await get_topic(topic_id, related=["handles"])
    return topic["handles"]
