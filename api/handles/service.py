"""
Handle business logic.

Scope:
- list/get with relation expansion (camp is always expanded)
- create from a Twitter screen name, resolving the Klout identity
- topic attach/detach
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, status

from camps import repository as camps_repository
from core.klout import KloutClient, KloutError
from core.listing import Listing
from core.twitter import USER_NOT_FOUND, TwitterClient, TwitterError
from topics import repository as topics_repository

from . import repository, schemas
from .repository import RelationChange

logger = logging.getLogger(__name__)


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


async def expand_relations(handles: list[dict[str, Any]], related: list[str]) -> list[dict[str, Any]]:
    """
    Attach `camp` (always) plus any requested relations to each handle row, in place.
    """
    if not handles:
        return handles

    handle_ids = [int(h["id"]) for h in handles]
    camp_ids = sorted({int(h["camp_id"]) for h in handles if h.get("camp_id") is not None})
    camps = {int(c["id"]): c for c in await camps_repository.get_camps_by_ids(camp_ids)}
    for handle in handles:
        camp_id = handle.get("camp_id")
        handle["camp"] = camps.get(int(camp_id)) if camp_id is not None else None

    if "topics" in related:
        topics = await repository.list_topics_for_handles(handle_ids)
        for handle in handles:
            handle["topics"] = topics.get(int(handle["id"]), [])

    if "klout_scores" in related:
        scores = await repository.list_scores_for_handles(handle_ids)
        for handle in handles:
            handle["klout_scores"] = scores.get(int(handle["id"]), [])

    return handles


async def list_handles(
    *,
    handle_filter: schemas.HandleFilter,
    listing: Listing,
    related: list[str],
) -> list[dict[str, Any]]:
    rows = await repository.list_handles(
        search=handle_filter.search,
        camp_id=handle_filter.camp,
        topic_id=handle_filter.topic,
        listing=listing,
    )
    return await expand_relations(rows, related)


async def load_handle(handle_id: int) -> dict[str, Any]:
    handle = await repository.get_handle(handle_id)
    if handle is None:
        raise _not_found("Handle")
    return handle


async def load_topic(topic_id: int) -> dict[str, Any]:
    topic = await topics_repository.get_topic(topic_id)
    if topic is None:
        raise _not_found("Topic")
    return topic


async def get_handle(handle_id: int, *, related: list[str]) -> dict[str, Any]:
    handle = await load_handle(handle_id)
    (expanded,) = await expand_relations([handle], related)
    return expanded


async def _check_camp(camp_id: int | None) -> None:
    if camp_id is not None and await camps_repository.get_camp(camp_id) is None:
        raise _not_found("Camp")


async def _lookup_klout_id(klout: KloutClient, username: str) -> str | None:
    # Handles without a Klout identity are kept; the score refresh job skips them.
    try:
        klout_id = await klout.get_identity(username)
    except KloutError as exc:
        logger.warning("klout_identity_failed username=%s error=%s", username, exc)
        return None
    if klout_id is None:
        logger.info("klout_identity_missing username=%s", username)
    return klout_id


async def create_handle(
    payload: schemas.CreateHandleRequest,
    *,
    twitter: TwitterClient,
    klout: KloutClient,
) -> dict[str, Any]:
    username = payload.username.strip().lstrip("@")
    await _check_camp(payload.camp_id)

    if await repository.handle_exists(username=username):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Handle already exists.")

    try:
        profile = await twitter.get_profile(username)
    except TwitterError as exc:
        if exc.has_code(USER_NOT_FOUND):
            raise _not_found("Twitter user") from exc
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Twitter request failed: {exc}") from exc

    klout_id = await _lookup_klout_id(klout, profile["username"])

    handle = await repository.create_handle(
        uid=int(profile["uid"]),
        username=profile["username"],
        name=profile["name"],
        profile=profile["profile"],
        camp_id=payload.camp_id,
        klout_id=klout_id,
    )
    if handle is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Handle already exists.")

    logger.info("handle_created handle_id=%s username=%s klout_id=%s", handle["id"], handle["username"], klout_id)
    (expanded,) = await expand_relations([handle], [])
    return expanded


async def update_handle(handle_id: int, payload: schemas.UpdateHandleRequest) -> dict[str, Any]:
    await load_handle(handle_id)

    values = payload.model_dump(exclude_unset=True)
    if values.get("name", "") is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name cannot be empty.")
    if "camp_id" in values:
        await _check_camp(values["camp_id"])

    handle = await repository.update_handle(handle_id, values)
    if handle is None:
        raise _not_found("Handle")
    (expanded,) = await expand_relations([handle], [])
    return expanded


async def delete_handle(handle_id: int) -> None:
    if not await repository.delete_handle(handle_id):
        raise _not_found("Handle")
    logger.info("handle_deleted handle_id=%s", handle_id)


async def handle_topics(handle_id: int) -> list[dict[str, Any]]:
    await load_handle(handle_id)
    topics = await repository.list_topics_for_handles([handle_id])
    return topics.get(handle_id, [])


async def handle_scores(handle_id: int) -> list[dict[str, Any]]:
    await load_handle(handle_id)
    scores = await repository.list_scores_for_handles([handle_id])
    return scores.get(handle_id, [])


async def attach_topic(handle_id: int, topic_id: int) -> dict[str, Any]:
    await load_handle(handle_id)
    topic = await load_topic(topic_id)

    result = await repository.attach_topic(handle_id, topic_id)
    if result is RelationChange.ALREADY_ATTACHED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Topic already attached.")
    if result is RelationChange.MISSING:
        # Handle or topic deleted between the lookup and the insert.
        raise _not_found("Handle or topic")

    logger.info("topic_attached handle_id=%s topic_id=%s", handle_id, topic_id)
    return topic


async def detach_topic(handle_id: int, topic_id: int) -> None:
    await load_handle(handle_id)
    await load_topic(topic_id)

    result = await repository.detach_topic(handle_id, topic_id)
    if result is RelationChange.NOT_ATTACHED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Topic not attached.")

    logger.info("topic_detached handle_id=%s topic_id=%s", handle_id, topic_id)
