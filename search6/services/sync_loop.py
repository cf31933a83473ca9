"""
search6.services.sync_loop — Fixed-Interval Sync Driver
=========================================================

Runs :meth:`Reconciler.sync_page` on a ``discord.ext.tasks`` loop inside the
API process.  The loop is a single sequential task: a tick that runs long
delays the next one instead of overlapping it.
"""

from __future__ import annotations

import logging

from discord.ext import tasks

from search6.database.engine import run_db
from search6.services.reconciler import Reconciler

logger = logging.getLogger(__name__)


class SyncLoop:
    """Owns the periodic sync task.

    Usage::

        loop = SyncLoop(reconciler, interval_seconds=3)
        await loop.start()
        ...
        loop.stop()
    """

    def __init__(self, reconciler: Reconciler, interval_seconds: float = 3.0) -> None:
        self.reconciler = reconciler
        self.interval_seconds = interval_seconds

    async def start(self) -> None:
        """Make sure the cursor counters exist, then start ticking."""
        await run_db(self.reconciler.cursor.ensure)
        self.sync_task.change_interval(seconds=self.interval_seconds)
        self.sync_task.start()
        logger.info("Leaderboard sync started (every %.1fs)", self.interval_seconds)

    def stop(self) -> None:
        self.sync_task.cancel()

    @property
    def running(self) -> bool:
        return self.sync_task.is_running()

    # -------------------------------------------------------------------
    # The tick
    # -------------------------------------------------------------------
    @tasks.loop(seconds=3)
    async def sync_task(self):
        """Advance the sync by one page."""
        try:
            await self.reconciler.sync_page()
        except Exception:
            logger.exception("Sync tick failed", extra={"task": "sync"})
