"""
Klout (influence score) HTTP client helpers.

Used endpoints:
- GET /identity.json/twitter?screenName=<name>  -> {"id": "...", "network": "ks"}
- GET /user.json/<kloutId>/score               -> {"score": 41.2, "scoreDelta": {...}}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from core import config

DEFAULT_BASE_URL = "http://api.klout.com/v2"


# Klout failures are explicit and separable from other runtime errors.
class KloutError(RuntimeError):
    pass


class KloutNotFoundError(KloutError):
    pass


@dataclass(frozen=True)
class KloutScoreSample:
    score: float
    delta_day: float | None
    delta_week: float | None
    delta_month: float | None


def klout_api_key() -> str:
    return config.env_str("KLOUT_API_KEY")


def klout_base_url() -> str:
    return config.env_str("KLOUT_BASE_URL", DEFAULT_BASE_URL).rstrip("/")


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class KloutClient:
    """
    Thin async wrapper around the two Klout endpoints the dashboard needs.

    One instance is created per process (see `main.lifespan`); each call opens
    its own short-lived `httpx.AsyncClient`.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

    @classmethod
    def from_env(cls) -> "KloutClient":
        return cls(api_key=klout_api_key(), base_url=klout_base_url())

    async def _get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        if not self.api_key:
            raise KloutError("KLOUT_API_KEY is empty.")

        query = {"key": self.api_key, **(params or {})}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self.transport,
            ) as client:
                resp = await client.get(path, params=query)
        except httpx.HTTPError as exc:
            raise KloutError(f"Klout request failed: {exc}") from exc

        if resp.status_code == 404:
            raise KloutNotFoundError(f"Klout resource not found: {path}")
        if resp.status_code != 200:
            body = resp.text[:300]
            raise KloutError(f"Klout request failed: {resp.status_code} {body}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise KloutError("Klout returned invalid JSON.") from exc
        if not isinstance(data, dict):
            raise KloutError("Klout returned a non-object payload.")
        return data

    async def get_identity(self, username: str) -> str | None:
        """
        Resolve a Twitter screen name to its Klout id, or None when Klout has no identity.
        """
        username = (username or "").strip()
        if not username:
            raise KloutError("Username is empty.")
        try:
            data = await self._get("/identity.json/twitter", {"screenName": username})
        except KloutNotFoundError:
            return None
        klout_id = str(data.get("id") or "").strip()
        return klout_id or None

    async def get_user_score(self, klout_id: str) -> KloutScoreSample:
        data = await self._get(f"/user.json/{klout_id}/score")
        score = _optional_float(data.get("score"))
        if score is None:
            raise KloutError("Klout returned no score.")

        delta = data.get("scoreDelta")
        if not isinstance(delta, dict):
            delta = {}
        return KloutScoreSample(
            score=score,
            delta_day=_optional_float(delta.get("dayChange")),
            delta_week=_optional_float(delta.get("weekChange")),
            delta_month=_optional_float(delta.get("monthChange")),
        )
