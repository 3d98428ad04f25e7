"""
Tweet business logic: timeline reads plus Twitter actions.

Upstream error handling for actions:
- 327 (already retweeted) and 139 (already favorited) count as success
- 144 (status deleted upstream) removes the local copy and answers 400
- anything else answers 502
"""

from __future__ import annotations

import logging
from typing import IO, Any, Awaitable, Callable

from fastapi import HTTPException, status

from core.twitter import ALREADY_FAVORITED, ALREADY_RETWEETED, STATUS_DELETED, TwitterClient, TwitterError
from handles import repository as handles_repository

from . import repository

logger = logging.getLogger(__name__)


async def _attach_handles(tweets: list[dict[str, Any]]) -> list[dict[str, Any]]:
    handle_ids = sorted({int(t["handle_id"]) for t in tweets if t.get("handle_id") is not None})
    handles = {int(h["id"]): h for h in await handles_repository.get_handles_by_ids(handle_ids)}
    for tweet in tweets:
        handle_id = tweet.get("handle_id")
        tweet["handle"] = handles.get(int(handle_id)) if handle_id is not None else None
    return tweets


async def list_tweets(
    *,
    max_id: str | None,
    handle_uid: int | None,
    topic_id: int | None,
    limit: int,
    sort_by: str,
    sort_order: str,
) -> list[dict[str, Any]]:
    rows = await repository.list_tweets(
        max_id=max_id,
        handle_uid=handle_uid,
        topic_id=topic_id,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await _attach_handles(rows)


async def load_tweet(tweet_id: str) -> dict[str, Any]:
    tweet = await repository.get_tweet(tweet_id)
    if tweet is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tweet not found")
    return tweet


async def get_tweet(tweet_id: str) -> dict[str, Any]:
    tweet = await load_tweet(tweet_id)
    parent = await repository.get_tweet(tweet["parent_id"]) if tweet.get("parent_id") else None
    replies = await repository.list_replies(tweet_id)
    await _attach_handles([tweet, *replies, *([parent] if parent else [])])
    tweet["parent"] = parent
    tweet["replies"] = replies
    return tweet


async def create_tweet(
    *,
    twitter: TwitterClient,
    text: str,
    reply_status_id: str | None = None,
    media: tuple[str, IO[bytes]] | None = None,
) -> dict[str, Any]:
    try:
        media_ids = [await twitter.upload_media(*media)] if media is not None else None
        posted = await twitter.status_update(
            text,
            in_reply_to_status_id=reply_status_id,
            media_ids=media_ids,
        )
    except TwitterError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Twitter request failed: {exc}") from exc
    logger.info("tweet_posted status_id=%s reply_to=%s", posted.get("id_str"), reply_status_id)
    return posted


async def _act(
    tweet_id: str,
    action: Callable[[str], Awaitable[Any]],
    *,
    tolerated_codes: tuple[int, ...],
    action_name: str,
) -> None:
    tweet = await load_tweet(tweet_id)
    try:
        await action(str(tweet["id"]))
    except TwitterError as exc:
        if any(exc.has_code(code) for code in tolerated_codes):
            logger.info("tweet_%s_already_done tweet_id=%s codes=%s", action_name, tweet_id, exc.codes)
        elif exc.has_code(STATUS_DELETED):
            await repository.delete_tweet(tweet_id)
            logger.info("tweet_deleted_upstream tweet_id=%s", tweet_id)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tweet deleted") from exc
        else:
            logger.warning("tweet_%s_failed tweet_id=%s codes=%s error=%s", action_name, tweet_id, exc.codes, exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Twitter request failed: {exc}",
            ) from exc


async def retweet(tweet_id: str, *, twitter: TwitterClient) -> dict[str, Any]:
    await _act(tweet_id, twitter.status_retweet, tolerated_codes=(ALREADY_RETWEETED,), action_name="retweet")
    updated = await repository.set_flags(tweet_id, retweeted=True)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tweet not found")
    return updated


async def favorite(tweet_id: str, *, twitter: TwitterClient) -> dict[str, Any]:
    await _act(tweet_id, twitter.status_favorite, tolerated_codes=(ALREADY_FAVORITED,), action_name="favorite")
    updated = await repository.set_flags(tweet_id, favorited=True)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tweet not found")
    return updated


async def unfavorite(tweet_id: str, *, twitter: TwitterClient) -> dict[str, Any]:
    await _act(tweet_id, twitter.status_unfavorite, tolerated_codes=(), action_name="unfavorite")
    updated = await repository.set_flags(tweet_id, favorited=False)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tweet not found")
    return updated
