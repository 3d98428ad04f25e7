"""
Twitter (v1.1 REST) client helpers built on tweepy.

tweepy is blocking, so every call runs through Starlette's threadpool.
Upstream API error codes are kept on `TwitterError.codes` so callers can
special-case them (e.g. 327 already retweeted, 144 status deleted).
"""

from __future__ import annotations

from typing import IO, Any, Callable, TypeVar

import tweepy
from fastapi.concurrency import run_in_threadpool

from core import config

USER_NOT_FOUND = 50
ALREADY_FAVORITED = 139
ALREADY_RETWEETED = 327
STATUS_DELETED = 144

T = TypeVar("T")


class TwitterError(RuntimeError):
    def __init__(self, message: str, *, codes: list[int] | None = None) -> None:
        super().__init__(message)
        self.codes = list(codes or [])

    def has_code(self, code: int) -> bool:
        return code in self.codes


def _credentials() -> dict[str, str]:
    return {
        "consumer_key": config.env_str("TWITTER_CONSUMER_KEY"),
        "consumer_secret": config.env_str("TWITTER_CONSUMER_SECRET"),
        "access_token": config.env_str("TWITTER_ACCESS_TOKEN"),
        "access_token_secret": config.env_str("TWITTER_ACCESS_TOKEN_SECRET"),
    }


def _status_to_dict(status: Any) -> dict[str, Any]:
    raw = getattr(status, "_json", None)
    return dict(raw) if isinstance(raw, dict) else {"id_str": str(getattr(status, "id", ""))}


class TwitterClient:
    def __init__(self, *, credentials: dict[str, str]) -> None:
        self._credentials = credentials
        self._api: tweepy.API | None = None

    @classmethod
    def from_env(cls) -> "TwitterClient":
        return cls(credentials=_credentials())

    def _client(self) -> tweepy.API:
        if self._api is not None:
            return self._api
        if not all(self._credentials.values()):
            raise TwitterError("Twitter API keys are not configured.")
        auth = tweepy.OAuth1UserHandler(
            self._credentials["consumer_key"],
            self._credentials["consumer_secret"],
            self._credentials["access_token"],
            self._credentials["access_token_secret"],
        )
        self._api = tweepy.API(auth)
        return self._api

    async def _call(self, fn: Callable[[tweepy.API], T]) -> T:
        api = self._client()
        try:
            return await run_in_threadpool(fn, api)
        except tweepy.errors.HTTPException as exc:
            raise TwitterError(str(exc), codes=list(exc.api_codes)) from exc
        except tweepy.errors.TweepyException as exc:
            raise TwitterError(str(exc)) from exc

    async def get_profile(self, username: str) -> dict[str, Any]:
        """
        Return {"uid", "username", "name", "profile"} for a screen name.
        """
        user = await self._call(lambda api: api.get_user(screen_name=username))
        profile = dict(getattr(user, "_json", {}) or {})
        return {
            "uid": int(user.id),
            "username": str(user.screen_name),
            "name": str(user.name or user.screen_name),
            "profile": profile,
        }

    async def upload_media(self, filename: str, fileobj: IO[bytes]) -> str:
        media = await self._call(lambda api: api.media_upload(filename=filename, file=fileobj))
        return str(media.media_id_string)

    async def status_update(
        self,
        text: str,
        *,
        in_reply_to_status_id: str | None = None,
        media_ids: list[str] | None = None,
    ) -> dict[str, Any]:
        status = await self._call(
            lambda api: api.update_status(
                status=text,
                in_reply_to_status_id=in_reply_to_status_id,
                media_ids=media_ids or None,
            )
        )
        return _status_to_dict(status)

    async def status_retweet(self, status_id: str) -> dict[str, Any]:
        return _status_to_dict(await self._call(lambda api: api.retweet(status_id)))

    async def status_favorite(self, status_id: str) -> dict[str, Any]:
        return _status_to_dict(await self._call(lambda api: api.create_favorite(status_id)))

    async def status_unfavorite(self, status_id: str) -> dict[str, Any]:
        return _status_to_dict(await self._call(lambda api: api.destroy_favorite(status_id)))
