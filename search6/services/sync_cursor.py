"""
search6.services.sync_cursor — Durable Page / Rank Cursor
==========================================================

Two counters in ``sync_counters`` survive restarts and are shared by every
sync pass:

- ``sync:page`` — pages claimed since the last wrap.  Claiming a page
  increments it *before* the fetch, so a crash or failed fetch skips that
  page instead of retrying it forever.
- ``sync:rank`` — the rank the next accepted record receives (1-based).

Both reset to ``(page=0, rank=1)`` when the listing wraps to its top.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from search6.constants import SYNC_PAGE_KEY, SYNC_RANK_KEY
from search6.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CursorState:
    page: int
    rank: int


class SyncCursor:
    """Process-durable progress through the upstream listing."""

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def ensure(self) -> None:
        """Create missing counters at their start values.  Idempotent."""
        self.kv.set_nx(SYNC_PAGE_KEY, 0)
        self.kv.set_nx(SYNC_RANK_KEY, 1)

    def claim_page(self) -> int:
        """Advance the page counter and return the page to fetch (0-based)."""
        return self.kv.incr(SYNC_PAGE_KEY, 1) - 1

    def current_rank(self) -> int:
        rank = self.kv.get_counter(SYNC_RANK_KEY)
        return 1 if rank is None else rank

    def advance_rank(self, accepted: int) -> int:
        """Move the rank counter past *accepted* records; return the new value."""
        return self.kv.incr(SYNC_RANK_KEY, accepted)

    def reset(self) -> None:
        """Restart from the top of the listing."""
        self.kv.set_counters({SYNC_PAGE_KEY: 0, SYNC_RANK_KEY: 1})
        logger.info("Sync cursor reset to page 0, rank 1")

    def state(self) -> CursorState:
        page = self.kv.get_counter(SYNC_PAGE_KEY)
        return CursorState(page=page or 0, rank=self.current_rank())
