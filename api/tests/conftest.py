"""Shared fixtures: an app client with auth/adapters overridden and an in-memory store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

from auth import dependencies as auth_dependencies
from camps import repository as camps_repository
from core.adapters import get_klout_client, get_twitter_client
from core.klout import KloutError, KloutScoreSample
from core.listing import Listing
from core.twitter import TwitterError
from handles import repository as handles_repository
from handles.repository import RelationChange
from main import app
from topics import repository as topics_repository

BASE_TIME = datetime(2016, 9, 20, tzinfo=timezone.utc)


class FakeTwitter:
    def __init__(self) -> None:
        self.profiles: dict[str, dict[str, Any]] = {}
        self.errors: dict[str, TwitterError] = {}
        self.calls: list[tuple[str, str]] = []

    def _maybe_fail(self, method: str, arg: str) -> None:
        self.calls.append((method, arg))
        error = self.errors.get(method)
        if error is not None:
            raise error

    async def get_profile(self, username: str) -> dict[str, Any]:
        self._maybe_fail("get_profile", username)
        if username not in self.profiles:
            raise TwitterError("User not found.", codes=[50])
        return self.profiles[username]

    async def upload_media(self, filename: str, fileobj: Any) -> str:
        self._maybe_fail("upload_media", filename)
        return "media-1"

    async def status_update(self, text: str, *, in_reply_to_status_id=None, media_ids=None) -> dict[str, Any]:
        self._maybe_fail("status_update", text)
        return {"id_str": "999", "text": text, "in_reply_to_status_id_str": in_reply_to_status_id, "media_ids": media_ids}

    async def status_retweet(self, status_id: str) -> dict[str, Any]:
        self._maybe_fail("status_retweet", status_id)
        return {"id_str": status_id}

    async def status_favorite(self, status_id: str) -> dict[str, Any]:
        self._maybe_fail("status_favorite", status_id)
        return {"id_str": status_id}

    async def status_unfavorite(self, status_id: str) -> dict[str, Any]:
        self._maybe_fail("status_unfavorite", status_id)
        return {"id_str": status_id}


class FakeKlout:
    def __init__(self) -> None:
        self.identities: dict[str, str] = {}
        self.scores: dict[str, KloutScoreSample] = {}
        self.failing: set[str] = set()
        self.score_calls: list[str] = []

    async def get_identity(self, username: str) -> str | None:
        return self.identities.get(username)

    async def get_user_score(self, klout_id: str) -> KloutScoreSample:
        self.score_calls.append(klout_id)
        if klout_id in self.failing:
            raise KloutError(f"Klout request failed: 503 for {klout_id}")
        return self.scores.get(klout_id, KloutScoreSample(score=10.0, delta_day=0.1, delta_week=0.2, delta_month=0.3))


class FakeStore:
    """
    In-memory stand-in for the camp/handle/topic repositories.

    Mirrors the repository contracts (None/False/RelationChange instead of
    exceptions) and the FK rules: camp delete nulls camp_id, handle/topic delete
    drops their links.
    """

    def __init__(self) -> None:
        self.camps: dict[int, dict[str, Any]] = {}
        self.handles: dict[int, dict[str, Any]] = {}
        self.topics: dict[int, dict[str, Any]] = {}
        self.links: list[tuple[int, int]] = []
        self.list_calls: list[dict[str, Any]] = []

    def _next_id(self, table: dict[int, Any]) -> int:
        return max(table, default=0) + 1

    def add_camp(self, name: str) -> dict[str, Any]:
        camp_id = self._next_id(self.camps)
        self.camps[camp_id] = {"id": camp_id, "name": name, "description": None, "created_at": BASE_TIME, "updated_at": BASE_TIME}
        return self.camps[camp_id]

    def add_handle(
        self,
        username: str,
        *,
        uid: int,
        name: str,
        camp_id: int | None = None,
        klout_id: str | None = None,
        klout_score: float | None = None,
        created_at: datetime = BASE_TIME,
    ) -> dict[str, Any]:
        handle_id = self._next_id(self.handles)
        self.handles[handle_id] = {
            "id": handle_id,
            "uid": uid,
            "username": username,
            "name": name,
            "profile": {},
            "camp_id": camp_id,
            "klout_id": klout_id,
            "klout_score": klout_score,
            "klout_checked_at": None,
            "created_at": created_at,
            "updated_at": created_at,
        }
        return self.handles[handle_id]

    def add_topic(self, name: str, keywords: list[str] | None = None) -> dict[str, Any]:
        topic_id = self._next_id(self.topics)
        self.topics[topic_id] = {
            "id": topic_id,
            "name": name,
            "description": None,
            "keywords": keywords or [],
            "created_at": BASE_TIME + timedelta(minutes=topic_id),
            "updated_at": BASE_TIME,
        }
        return self.topics[topic_id]

    def link(self, handle_id: int, topic_id: int) -> None:
        self.links.append((handle_id, topic_id))

    # camps.repository

    async def get_camp(self, camp_id: int) -> dict[str, Any] | None:
        camp = self.camps.get(camp_id)
        return dict(camp) if camp else None

    async def get_camps_by_ids(self, camp_ids: list[int]) -> list[dict[str, Any]]:
        return [dict(self.camps[i]) for i in camp_ids if i in self.camps]

    async def list_camps(self) -> list[dict[str, Any]]:
        return [dict(c) for c in sorted(self.camps.values(), key=lambda c: (c["name"], c["id"]))]

    async def create_camp(self, *, name: str, description: str | None) -> dict[str, Any]:
        camp = self.add_camp(name)
        camp["description"] = description
        return dict(camp)

    async def delete_camp(self, camp_id: int) -> bool:
        if self.camps.pop(camp_id, None) is None:
            return False
        for handle in self.handles.values():
            if handle["camp_id"] == camp_id:
                handle["camp_id"] = None
        return True

    # handles.repository

    async def list_handles(self, *, search, camp_id, topic_id, listing: Listing) -> list[dict[str, Any]]:
        self.list_calls.append({"search": search, "camp_id": camp_id, "topic_id": topic_id, "listing": listing})
        rows = list(self.handles.values())
        if search:
            needle = search.lower()
            rows = [h for h in rows if needle in h["username"].lower() or needle in h["name"].lower()]
        if camp_id is not None:
            rows = [h for h in rows if h["camp_id"] == camp_id]
        if topic_id is not None:
            rows = [h for h in rows if (h["id"], topic_id) in self.links]
        rows.sort(key=lambda h: h["id"])
        present = [h for h in rows if h[listing.sort] is not None]
        missing = [h for h in rows if h[listing.sort] is None]
        present.sort(key=lambda h: h[listing.sort], reverse=listing.sort_order == "desc")
        rows = present + missing
        return [dict(h) for h in rows[listing.offset : listing.offset + listing.limit]]

    async def get_handle(self, handle_id: int) -> dict[str, Any] | None:
        handle = self.handles.get(handle_id)
        return dict(handle) if handle else None

    async def get_handles_by_ids(self, handle_ids: list[int]) -> list[dict[str, Any]]:
        return [dict(self.handles[i]) for i in handle_ids if i in self.handles]

    async def handle_exists(self, *, username=None, uid=None) -> bool:
        return any(
            h["username"].lower() == (username or "").lower() or h["uid"] == uid
            for h in self.handles.values()
        )

    async def create_handle(self, *, uid, username, name, profile, camp_id, klout_id) -> dict[str, Any] | None:
        if await self.handle_exists(username=username, uid=uid):
            return None
        handle = self.add_handle(username, uid=uid, name=name, camp_id=camp_id, klout_id=klout_id)
        handle["profile"] = profile
        return dict(handle)

    async def update_handle(self, handle_id: int, values: dict[str, Any]) -> dict[str, Any] | None:
        handle = self.handles.get(handle_id)
        if handle is None:
            return None
        handle.update({k: v for k, v in values.items() if k in handles_repository.UPDATABLE_COLUMNS})
        return dict(handle)

    async def delete_handle(self, handle_id: int) -> bool:
        if self.handles.pop(handle_id, None) is None:
            return False
        self.links = [link for link in self.links if link[0] != handle_id]
        return True

    async def list_topics_for_handles(self, handle_ids: list[int]) -> dict[int, list[dict[str, Any]]]:
        grouped: dict[int, list[dict[str, Any]]] = {}
        for handle_id, topic_id in self.links:
            if handle_id in handle_ids:
                grouped.setdefault(handle_id, []).append(dict(self.topics[topic_id]))
        return grouped

    async def list_scores_for_handles(self, handle_ids: list[int], *, limit: int = 30) -> dict[int, list[dict[str, Any]]]:
        return {}

    async def attach_topic(self, handle_id: int, topic_id: int) -> RelationChange:
        if handle_id not in self.handles or topic_id not in self.topics:
            return RelationChange.MISSING
        if (handle_id, topic_id) in self.links:
            return RelationChange.ALREADY_ATTACHED
        self.links.append((handle_id, topic_id))
        return RelationChange.ATTACHED

    async def detach_topic(self, handle_id: int, topic_id: int) -> RelationChange:
        if (handle_id, topic_id) not in self.links:
            return RelationChange.NOT_ATTACHED
        self.links.remove((handle_id, topic_id))
        return RelationChange.DETACHED

    # topics.repository

    async def list_topics(self, *, search, listing: Listing) -> list[dict[str, Any]]:
        rows = sorted(self.topics.values(), key=lambda t: t["id"])
        if search:
            rows = [t for t in rows if search.lower() in t["name"].lower()]
        rows.sort(key=lambda t: t[listing.sort], reverse=listing.sort_order == "desc")
        return [dict(t) for t in rows[listing.offset : listing.offset + listing.limit]]

    async def get_topic(self, topic_id: int) -> dict[str, Any] | None:
        topic = self.topics.get(topic_id)
        return dict(topic) if topic else None

    async def create_topic(self, *, name, description, keywords) -> dict[str, Any]:
        topic = self.add_topic(name, keywords)
        topic["description"] = description
        return dict(topic)

    async def update_topic(self, topic_id: int, values: dict[str, Any]) -> dict[str, Any] | None:
        topic = self.topics.get(topic_id)
        if topic is None:
            return None
        topic.update(values)
        return dict(topic)

    async def delete_topic(self, topic_id: int) -> bool:
        if self.topics.pop(topic_id, None) is None:
            return False
        self.links = [link for link in self.links if link[1] != topic_id]
        return True

    async def list_handles_for_topics(self, topic_ids: list[int]) -> dict[int, list[dict[str, Any]]]:
        grouped: dict[int, list[dict[str, Any]]] = {}
        for handle_id, topic_id in self.links:
            if topic_id in topic_ids:
                grouped.setdefault(topic_id, []).append(dict(self.handles[handle_id]))
        return grouped


_CAMP_FUNCS = ("get_camp", "get_camps_by_ids", "list_camps", "create_camp", "delete_camp")
_HANDLE_FUNCS = (
    "list_handles",
    "get_handle",
    "get_handles_by_ids",
    "handle_exists",
    "create_handle",
    "update_handle",
    "delete_handle",
    "list_topics_for_handles",
    "list_scores_for_handles",
    "attach_topic",
    "detach_topic",
)
_TOPIC_FUNCS = ("list_topics", "get_topic", "create_topic", "update_topic", "delete_topic", "list_handles_for_topics")


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeStore:
    fake = FakeStore()
    for name in _CAMP_FUNCS:
        monkeypatch.setattr(camps_repository, name, getattr(fake, name))
    for name in _HANDLE_FUNCS:
        monkeypatch.setattr(handles_repository, name, getattr(fake, name))
    for name in _TOPIC_FUNCS:
        monkeypatch.setattr(topics_repository, name, getattr(fake, name))
    return fake


@pytest.fixture
def twitter() -> FakeTwitter:
    return FakeTwitter()


@pytest.fixture
def klout() -> FakeKlout:
    return FakeKlout()


@pytest.fixture
def client(twitter: FakeTwitter, klout: FakeKlout) -> Iterator[TestClient]:
    app.dependency_overrides[auth_dependencies.get_current_user] = lambda: {"id": 1, "email": "admin@example.com"}
    app.dependency_overrides[get_twitter_client] = lambda: twitter
    app.dependency_overrides[get_klout_client] = lambda: klout
    try:
        # No context manager: the lifespan (DB pool, refresh job) is not started.
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
