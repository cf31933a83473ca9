"""
search6.services.reconciler — Page Fetch & Merge
==================================================

One call to :meth:`Reconciler.sync_page` performs one step of the endless
walk over the upstream leaderboard.

How it works:
    1. Claim the next page from the cursor (the page counter moves *before*
       the fetch, so a failed fetch skips that page until the next wrap).
    2. Fetch the page.  A failure ends the step; nothing else changes.
    3. Stage records in listing order, assigning consecutive ranks.  The
       first record below ``min_xp`` means the listing has wrapped to its
       top: the rest of the page is dropped and the cursor resets.
    4. Batch-read the prior snapshots of every staged id and queue a
       :class:`LevelUpEvent` for each upward crossing of the notification
       level.  First sightings and corrupt snapshots never qualify.
    5. Write all staged records + name index entries in one transaction.

Readers can observe a mix of this cycle's and the last cycle's ranks while a
cycle is in progress; within one page they never see a name index entry
without its record.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from search6.database.engine import run_db
from search6.engine.events import LevelUpEvent, detect_level_up
from search6.engine.records import ParticipantRecord, RawParticipant
from search6.errors import LeaderboardFetchError
from search6.services.leaderboard_client import LeaderboardClient
from search6.services.notifier import LevelUpNotifier
from search6.services.record_store import RecordStore
from search6.services.sync_cursor import SyncCursor

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncResult:
    """What one ``sync_page`` step did."""

    page: int
    fetched: int = 0
    accepted: int = 0
    wrapped: bool = False
    fetch_failed: bool = False
    written: bool = False
    level_ups: list[LevelUpEvent] = field(default_factory=list)


def stage_page(
    players: Sequence[RawParticipant],
    start_rank: int,
    min_xp: int,
    synced_at_ms: int,
) -> tuple[list[ParticipantRecord], bool]:
    """Turn upstream entries into ranked records.

    Returns ``(records, wrapped)``.  Processing stops at the first entry
    below *min_xp*; entries with a malformed id are skipped without using
    up a rank.
    """
    staged: list[ParticipantRecord] = []
    rank = start_rank
    for player in players:
        if player.xp < min_xp:
            return staged, True
        try:
            record = ParticipantRecord.from_raw(player, rank=rank, synced_at_ms=synced_at_ms)
        except ValueError:
            logger.warning("Skipping leaderboard entry with bad id %r", player.id)
            continue
        staged.append(record)
        rank += 1
    return staged, False


def find_level_ups(
    staged: Sequence[ParticipantRecord],
    priors: dict[int, str],
    threshold: int,
) -> list[LevelUpEvent]:
    """Diff staged records against their stored JSON.  At most one event per id."""
    events: list[LevelUpEvent] = []
    seen: set[int] = set()
    for record in staged:
        if record.id in seen:
            continue
        seen.add(record.id)
        raw = priors.get(record.id)
        if raw is None:
            continue  # first sighting
        try:
            previous = ParticipantRecord.from_json(raw)
        except ValidationError:
            logger.warning("Stored record for %d is corrupt; overwriting", record.id)
            continue
        event = detect_level_up(previous, record, threshold)
        if event is not None:
            events.append(event)
    return events


class Reconciler:
    """Sole writer of participant records.

    Parameters
    ----------
    store, cursor:
        Shared handles to the record store and the sync cursor.
    client:
        Upstream page fetcher.
    notifier:
        Receives level-up events; ``submit`` must not block.
    """

    def __init__(
        self,
        store: RecordStore,
        cursor: SyncCursor,
        client: LeaderboardClient,
        notifier: LevelUpNotifier | None = None,
        *,
        page_size: int = 1000,
        min_xp: int = 100,
        notify_level: int = 5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.cursor = cursor
        self.client = client
        self.notifier = notifier
        self.page_size = page_size
        self.min_xp = min_xp
        self.notify_level = notify_level
        self.clock = clock

    async def sync_page(self) -> SyncResult:
        """Fetch, rank, diff and store one page.  Never raises for fetch or
        write failures; those are logged and reported in the result.
        """
        page = await run_db(self.cursor.claim_page)
        start_rank = await run_db(self.cursor.current_rank)
        result = SyncResult(page=page)

        try:
            players = await self.client.fetch_page(page, self.page_size)
        except LeaderboardFetchError as exc:
            logger.warning("Skipping page %d: %s", page, exc)
            result.fetch_failed = True
            return result
        result.fetched = len(players)

        synced_at_ms = int(self.clock() * 1000)
        staged, wrapped = stage_page(players, start_rank, self.min_xp, synced_at_ms)
        result.accepted = len(staged)
        result.wrapped = wrapped

        try:
            if wrapped:
                await run_db(self.cursor.reset)
            elif staged:
                await run_db(self.cursor.advance_rank, len(staged))
        except SQLAlchemyError:
            logger.exception("Failed to update sync cursor after page %d", page)

        if not staged:
            return result

        try:
            priors = await run_db(self.store.prior_snapshots, [r.id for r in staged])
        except SQLAlchemyError:
            logger.exception("Failed to read prior snapshots for page %d", page)
            priors = {}

        result.level_ups = find_level_ups(staged, priors, self.notify_level)
        if self.notifier is not None:
            for event in result.level_ups:
                self.notifier.submit(event)

        try:
            await run_db(self.store.write_batch, staged)
        except SQLAlchemyError:
            logger.exception("Failed to write page %d; page lost for this cycle", page)
            return result
        result.written = True

        logger.info(
            "Synced page %d: %d/%d accepted, %d level-up(s)%s",
            page, result.accepted, result.fetched, len(result.level_ups),
            "; listing wrapped" if wrapped else "",
        )
        return result
