"""
Periodic Klout score refresh.

Each tick refreshes exactly one handle (least recently checked first). Failures
are logged and the next tick simply moves on; nothing is retried within a tick.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from core import config
from core.klout import KloutClient

from . import repository

logger = logging.getLogger(__name__)


def refresh_interval_s() -> int:
    return max(0, config.env_int("KLOUT_INTERVAL_SECONDS", 0))


class ScoreRefreshJob:
    """
    Owns the refresh timer. `main.lifespan` calls `start()` after the DB pool is up
    and `stop()` before it closes.
    """

    def __init__(self, *, klout: KloutClient, interval_s: int) -> None:
        self.klout = klout
        self.interval_s = interval_s
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.interval_s <= 0:
            logger.info("score_refresh_disabled interval_s=%s", self.interval_s)
            return
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="score-refresh")
        logger.info("score_refresh_started interval_s=%s", self.interval_s)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("score_refresh_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            await self.tick()

    async def tick(self) -> dict[str, Any] | None:
        """
        Refresh one handle. Returns the new score row, or None when idle or failed.
        """
        try:
            handle = await repository.claim_next_handle()
            if handle is None:
                logger.info("score_refresh_idle")
                return None

            sample = await self.klout.get_user_score(str(handle["klout_id"]))
            row = await repository.record_score(int(handle["id"]), sample)
        except Exception:
            logger.exception("score_refresh_failed")
            return None

        logger.info(
            "score_refresh_complete handle_id=%s username=%s score=%s",
            handle["id"],
            handle["username"],
            sample.score,
        )
        return row
