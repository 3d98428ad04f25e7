from typing import Any

import pytest

from core.twitter import TwitterError
from tweets import repository as tweets_repository


class FakeTweets:
    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.list_calls: list[dict[str, Any]] = []

    def add(self, tweet_id: str, *, handle_id: int | None = None, parent_id: str | None = None) -> dict[str, Any]:
        self.rows[tweet_id] = {
            "id": tweet_id,
            "handle_id": handle_id,
            "parent_id": parent_id,
            "text": f"tweet {tweet_id}",
            "data": {},
            "retweeted": False,
            "favorited": False,
            "created_at": None,
        }
        return self.rows[tweet_id]

    async def list_tweets(self, **kwargs):
        self.list_calls.append(kwargs)
        rows = sorted(self.rows.values(), key=lambda t: int(t["id"]), reverse=kwargs["sort_order"] == "desc")
        if kwargs["max_id"] is not None:
            rows = [t for t in rows if int(t["id"]) <= int(kwargs["max_id"])]
        return [dict(t) for t in rows[: kwargs["limit"]]]

    async def get_tweet(self, tweet_id):
        row = self.rows.get(tweet_id)
        return dict(row) if row else None

    async def list_replies(self, tweet_id):
        return [dict(t) for t in self.rows.values() if t["parent_id"] == tweet_id]

    async def set_flags(self, tweet_id, *, retweeted=None, favorited=None):
        row = self.rows.get(tweet_id)
        if row is None:
            return None
        if retweeted is not None:
            row["retweeted"] = retweeted
        if favorited is not None:
            row["favorited"] = favorited
        return dict(row)

    async def delete_tweet(self, tweet_id):
        return self.rows.pop(tweet_id, None) is not None


@pytest.fixture
def tweets(monkeypatch: pytest.MonkeyPatch, store) -> FakeTweets:
    fake = FakeTweets()
    for name in ("list_tweets", "get_tweet", "list_replies", "set_flags", "delete_tweet"):
        monkeypatch.setattr(tweets_repository, name, getattr(fake, name))
    return fake


def test_list_tweets_pages_backwards_with_handles(client, store, tweets) -> None:
    alice = store.add_handle("alice", uid=11, name="Alice")
    for tweet_id in ("100", "205", "1000"):
        tweets.add(tweet_id, handle_id=alice["id"])

    resp = client.get("/tweets", params={"maxId": "999", "userId": 11, "limit": 5})

    assert resp.status_code == 200
    body = resp.json()
    assert [t["id"] for t in body] == ["205", "100"]
    assert body[0]["handle"]["username"] == "alice"
    assert tweets.list_calls[-1]["handle_uid"] == 11
    assert tweets.list_calls[-1]["sort_by"] == "id"


def test_list_tweets_rejects_non_numeric_max_id(client, store, tweets) -> None:
    resp = client.get("/tweets", params={"maxId": "abc"})

    assert resp.status_code == 400
    assert resp.json()["message"].startswith('invalid "maxId"')


def test_get_tweet_includes_parent_and_replies(client, store, tweets) -> None:
    tweets.add("10")
    tweets.add("11", parent_id="10")
    tweets.add("12", parent_id="11")

    resp = client.get("/tweets/11")

    assert resp.status_code == 200
    body = resp.json()
    assert body["parent"]["id"] == "10"
    assert [r["id"] for r in body["replies"]] == ["12"]
    assert client.get("/tweets/404").status_code == 404


def test_retweet_marks_flag(client, store, tweets, twitter) -> None:
    tweets.add("50")

    resp = client.post("/tweets/50/retweet")

    assert resp.status_code == 200
    assert resp.json()["retweeted"] is True
    assert twitter.calls == [("status_retweet", "50")]


def test_retweet_already_retweeted_counts_as_success(client, store, tweets, twitter) -> None:
    tweets.add("51")
    twitter.errors["status_retweet"] = TwitterError("You have already retweeted this Tweet.", codes=[327])

    resp = client.post("/tweets/51/retweet")

    assert resp.status_code == 200
    assert tweets.rows["51"]["retweeted"] is True


def test_favorite_already_favorited_counts_as_success(client, store, tweets, twitter) -> None:
    tweets.add("52")
    twitter.errors["status_favorite"] = TwitterError("You have already favorited this status.", codes=[139])

    resp = client.post("/tweets/52/favorite")

    assert resp.status_code == 200
    assert tweets.rows["52"]["favorited"] is True


@pytest.mark.parametrize("action, method", [("retweet", "status_retweet"), ("unfavorite", "status_unfavorite")])
def test_deleted_upstream_removes_local_tweet(client, store, tweets, twitter, action, method) -> None:
    tweets.add("53")
    twitter.errors[method] = TwitterError("No status found with that ID.", codes=[144])

    resp = client.post(f"/tweets/53/{action}")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Tweet deleted"
    assert "53" not in tweets.rows


def test_other_twitter_errors_are_bad_gateway(client, store, tweets, twitter) -> None:
    tweets.add("54")
    twitter.errors["status_favorite"] = TwitterError("Rate limit exceeded", codes=[88])

    resp = client.post("/tweets/54/favorite")

    assert resp.status_code == 502
    assert tweets.rows["54"]["favorited"] is False


def test_action_on_unknown_tweet(client, store, tweets, twitter) -> None:
    resp = client.post("/tweets/77/retweet")

    assert resp.status_code == 404
    assert twitter.calls == []


def test_create_tweet_with_media(client, store, tweets, twitter) -> None:
    resp = client.post(
        "/tweets",
        data={"text": "hello", "replyStatusId": "42"},
        files={"file": ("chart.png", b"\x89PNG", "image/png")},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["media_ids"] == ["media-1"]
    assert body["in_reply_to_status_id_str"] == "42"
    assert [call[0] for call in twitter.calls] == ["upload_media", "status_update"]


def test_create_tweet_upstream_failure(client, store, tweets, twitter) -> None:
    twitter.errors["status_update"] = TwitterError("Status is a duplicate.", codes=[187])

    resp = client.post("/tweets", data={"text": "hello"})

    assert resp.status_code == 502
