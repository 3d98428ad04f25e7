"""
FastAPI dependencies for the process-wide service adapters.

The adapters are created once in `main.lifespan` and stored on `app.state`.
"""

from __future__ import annotations

from fastapi import Request

from core.klout import KloutClient
from core.twitter import TwitterClient


def get_klout_client(request: Request) -> KloutClient:
    return request.app.state.klout_client


def get_twitter_client(request: Request) -> TwitterClient:
    return request.app.state.twitter_client
