"""
tests/test_sync_loop.py — Fixed-Interval Sync Driver
======================================================
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

from search6.services.sync_loop import SyncLoop


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


def _reconciler(**sync_kwargs) -> MagicMock:
    reconciler = MagicMock()
    reconciler.cursor.ensure = MagicMock()
    reconciler.sync_page = AsyncMock(**sync_kwargs)
    return reconciler


class TestSyncLoop:
    def test_tick_swallows_errors(self):
        reconciler = _reconciler(side_effect=RuntimeError("boom"))
        loop = SyncLoop(reconciler, interval_seconds=3)
        run_async(loop.sync_task())
        reconciler.sync_page.assert_awaited_once()

    def test_start_ensures_cursor_and_ticks(self):
        reconciler = _reconciler(return_value=None)
        loop = SyncLoop(reconciler, interval_seconds=0.01)

        async def go():
            await loop.start()
            assert loop.running
            await asyncio.sleep(0.1)
            loop.stop()

        run_async(go())
        reconciler.cursor.ensure.assert_called_once()
        assert reconciler.sync_page.await_count >= 2

    def test_loops_are_per_instance(self):
        a = SyncLoop(_reconciler())
        b = SyncLoop(_reconciler())
        assert a.sync_task is not b.sync_task
