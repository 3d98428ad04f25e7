"""
Tweet API endpoints.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from auth import dependencies as auth_dependencies
from core.adapters import get_twitter_client
from core.listing import DEFAULT_PAGE_SIZE, SortOrder
from core.twitter import TwitterClient

from . import service

MAX_MEDIA_BYTES = 10 * 1024 * 1024

router = APIRouter(dependencies=[Depends(auth_dependencies.get_current_user)])

TweetSort = Literal["id", "created_at"]


@router.get("/tweets")
async def list_tweets(
    max_id: str | None = Query(default=None, alias="maxId", pattern=r"^\d+$"),
    user_id: int | None = Query(default=None, alias="userId"),
    topic_id: int | None = Query(default=None, alias="topicId"),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=200),
    sort_by: TweetSort = Query(default="id", alias="sortBy"),
    sort_order: SortOrder = Query(default="desc", alias="sortOrder"),
) -> list[dict]:
    """
    Timeline read. `userId` is the handle's Twitter uid; `maxId` pages backwards.
    """
    return await service.list_tweets(
        max_id=max_id,
        handle_uid=user_id,
        topic_id=topic_id,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("/tweets")
async def create_tweet(
    text: str = Form(..., min_length=1, max_length=280),
    reply_status_id: str | None = Form(default=None, alias="replyStatusId"),
    file: UploadFile | None = File(default=None),
    twitter: TwitterClient = Depends(get_twitter_client),
) -> dict:
    media = None
    if file is not None:
        if file.size is not None and file.size > MAX_MEDIA_BYTES:
            raise HTTPException(status_code=413, detail="File too large.")
        media = (file.filename or "upload", file.file)
    try:
        return await service.create_tweet(
            twitter=twitter,
            text=text,
            reply_status_id=reply_status_id,
            media=media,
        )
    finally:
        if file is not None:
            await file.close()


@router.get("/tweets/{tweet_id}")
async def get_tweet(tweet_id: str) -> dict:
    return await service.get_tweet(tweet_id)


@router.post("/tweets/{tweet_id}/retweet")
async def retweet(tweet_id: str, twitter: TwitterClient = Depends(get_twitter_client)) -> dict:
    return await service.retweet(tweet_id, twitter=twitter)


@router.post("/tweets/{tweet_id}/favorite")
async def favorite(tweet_id: str, twitter: TwitterClient = Depends(get_twitter_client)) -> dict:
    return await service.favorite(tweet_id, twitter=twitter)


@router.post("/tweets/{tweet_id}/unfavorite")
async def unfavorite(tweet_id: str, twitter: TwitterClient = Depends(get_twitter_client)) -> dict:
    return await service.unfavorite(tweet_id, twitter=twitter)
