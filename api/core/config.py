"""
Environment-driven settings helpers.

Feature modules keep their own small getters (e.g. `klout_api_key()`) and build
them on top of these, so the environment is read at call time and tests can
monkeypatch it.
"""

from __future__ import annotations

import os


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_list(name: str, default: list[str]) -> list[str]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO").upper()


def cors_origins() -> list[str]:
    return env_list("CORS_ORIGINS", ["http://localhost:3000", "http://127.0.0.1:3000"])


def front_uri() -> str:
    return env_str("FRONT_URI", "http://localhost:3000").rstrip("/")
