"""
search6.services.notifier — Level-Up Webhook Notifications
============================================================

The reconciler hands every :class:`LevelUpEvent` to :meth:`LevelUpNotifier.submit`,
which only enqueues.  Worker tasks drain the bounded queue, render the
member's rank card and post it to the configured Discord webhook.

Delivery is best effort:

- No webhook configured → the notifier is inert and ``submit`` is a no-op.
- Queue full → the event is dropped with a warning.
- Render / send failure → logged; nothing is retried.

Embed construction lives in :mod:`search6.services.embeds`.
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Protocol

import discord
import httpx

from search6.engine.events import LevelUpEvent
from search6.engine.records import ParticipantRecord
from search6.services.embeds import CARD_FILENAME, build_level_up_embed, card_request

logger = logging.getLogger(__name__)

NOTIFIER_USERNAME = "search6 notifier"


# ---------------------------------------------------------------------------
# Card rendering (external collaborator)
# ---------------------------------------------------------------------------
class CardRenderer(Protocol):
    async def render(self, record: ParticipantRecord, level: int) -> bytes:
        """Return the PNG rank card for *record*."""
        ...


class HttpCardRenderer:
    """Fetch rank cards from the rendering service at ``<card_url>?id=<id>``."""

    def __init__(self, http: httpx.AsyncClient, card_url: str) -> None:
        self.http = http
        self.card_url = card_url

    async def render(self, record: ParticipantRecord, level: int) -> bytes:
        resp = await self.http.get(self.card_url, params={"id": record.id})
        resp.raise_for_status()
        return resp.content


# ---------------------------------------------------------------------------
# Notifier
# ---------------------------------------------------------------------------
class LevelUpNotifier:
    """Bounded queue + worker tasks in front of a Discord webhook.

    Parameters
    ----------
    webhook:
        Target webhook, or ``None`` to disable notifications entirely.
    renderer:
        Produces the card image attached to each message.
    root_url:
        Public base URL used for card links and the embed thumbnail.
    thread_id:
        Post into this thread of the webhook's channel, if set.
    """

    def __init__(
        self,
        webhook: discord.Webhook | None,
        renderer: CardRenderer,
        *,
        root_url: str,
        thread_id: int | None = None,
        queue_size: int = 256,
        workers: int = 2,
    ) -> None:
        self.webhook = webhook
        self.renderer = renderer
        self.root_url = root_url
        self.thread_id = thread_id
        self.worker_count = workers
        self._queue: asyncio.Queue[LevelUpEvent] = asyncio.Queue(maxsize=queue_size)
        self._workers: list[asyncio.Task] = []

    @property
    def enabled(self) -> bool:
        return self.webhook is not None

    # -------------------------------------------------------------------
    # Producer side (the reconciler)
    # -------------------------------------------------------------------
    def submit(self, event: LevelUpEvent) -> bool:
        """Queue *event* without waiting.  Returns False if it was not queued."""
        if not self.enabled:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Notification queue full; dropping level-up for %d", event.user_id
            )
            return False
        return True

    # -------------------------------------------------------------------
    # Consumer side
    # -------------------------------------------------------------------
    async def notify(self, event: LevelUpEvent) -> None:
        """Render the card and post the announcement.  Raises on failure."""
        if self.webhook is None:
            return
        record = event.record
        card = await self.renderer.render(record, event.new_level)
        embed = build_level_up_embed(record, event.new_level, self.root_url)

        kwargs: dict = {
            "content": card_request(self.root_url, record.id),
            "username": NOTIFIER_USERNAME,
            "avatar_url": f"{self.root_url}/mee6_bad.png",
            "file": discord.File(io.BytesIO(card), filename=CARD_FILENAME),
            "embed": embed,
        }
        if self.thread_id:
            kwargs["thread"] = discord.Object(id=self.thread_id)

        await self.webhook.send(**kwargs)
        logger.info(
            "Announced %s (%d) reaching level %d",
            record.slug, record.id, event.new_level,
        )

    async def _worker(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.notify(event)
            except Exception:
                logger.exception("Level-up notification for %d failed", event.user_id)
            finally:
                self._queue.task_done()

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Start the worker tasks.  A disabled notifier starts nothing."""
        if self._workers or not self.enabled:
            return
        loop = loop or asyncio.get_running_loop()
        self._workers = [
            loop.create_task(self._worker(), name=f"notify-worker-{n}")
            for n in range(self.worker_count)
        ]

    def stop(self) -> None:
        """Cancel the worker tasks.  Queued events are discarded."""
        for task in self._workers:
            task.cancel()
        self._workers = []

    async def join(self) -> None:
        """Wait until every queued event has been processed."""
        await self._queue.join()
