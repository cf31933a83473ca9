"""
search6.api.main — FastAPI application entry point
=====================================================

The app process also owns the background work:

1. A shared ``httpx.AsyncClient`` with an explicit timeout.
2. The level-up notifier (inert without ``WEBHOOK_URL``).
3. The leaderboard sync loop.
4. The Discord login exchange (disabled without OAuth credentials).

Run with::

    alembic upgrade head          # production schema (PostgreSQL)
    uvicorn search6.api.main:app --port 8080

Startup also runs :func:`~search6.database.engine.init_db`, so a fresh
development database gets its tables before the sync cursor is created.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import aiohttp
import discord
import httpx
from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from search6.api.auth import router as auth_router  # noqa: E402
from search6.api.deps import get_config, get_engine  # noqa: E402
from search6.api.routes.public import router as public_router  # noqa: E402
from search6.config import Search6Config  # noqa: E402
from search6.database.engine import init_db, run_db  # noqa: E402
from search6.services.auth_exchange import AuthExchange, oauth_credentials  # noqa: E402
from search6.services.kv_store import KeyValueStore  # noqa: E402
from search6.services.leaderboard_client import LeaderboardClient  # noqa: E402
from search6.services.notifier import HttpCardRenderer, LevelUpNotifier  # noqa: E402
from search6.services.oauth_state import OAuthStateStore  # noqa: E402
from search6.services.reconciler import Reconciler  # noqa: E402
from search6.services.record_store import RecordStore  # noqa: E402
from search6.services.sync_cursor import SyncCursor  # noqa: E402
from search6.services.sync_loop import SyncLoop  # noqa: E402

logger = logging.getLogger(__name__)


def _webhook_thread_id() -> int | None:
    raw = os.getenv("WEBHOOK_THREAD_ID", "").strip()
    return int(raw) if raw else None


def build_notifier(
    cfg: Search6Config,
    http: httpx.AsyncClient,
    session: aiohttp.ClientSession | None,
) -> LevelUpNotifier:
    """Wire the webhook from ``WEBHOOK_URL``; without one the notifier is inert."""
    webhook = None
    url = os.getenv("WEBHOOK_URL", "").strip()
    if url and session is not None:
        webhook = discord.Webhook.from_url(url, session=session)
        if cfg.card_url is None:
            logger.warning(
                "card_url not set; rank cards will be fetched from %s, "
                "which search6 itself does not serve",
                cfg.card_endpoint,
            )
    return LevelUpNotifier(
        webhook,
        HttpCardRenderer(http, cfg.card_endpoint),
        root_url=cfg.root_url,
        thread_id=_webhook_thread_id(),
        queue_size=cfg.notify_queue_size,
        workers=cfg.notify_workers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle: start sync + notifier, wire login."""
    cfg = get_config()
    engine = get_engine()
    await run_db(init_db, engine)
    kv = KeyValueStore(engine)

    http = httpx.AsyncClient(timeout=cfg.http_timeout_seconds)
    session = aiohttp.ClientSession() if os.getenv("WEBHOOK_URL", "").strip() else None

    notifier = build_notifier(cfg, http, session)
    if notifier.enabled:
        notifier.start()
        logger.info("Level-up notifications enabled (level %d)", cfg.notify_level)
    else:
        logger.warning("WEBHOOK_URL not set; level-up notifications disabled")

    reconciler = Reconciler(
        RecordStore(kv),
        SyncCursor(kv),
        LeaderboardClient(http, cfg.leaderboard_endpoint),
        notifier,
        page_size=cfg.page_size,
        min_xp=cfg.min_xp,
        notify_level=cfg.notify_level,
    )
    sync = SyncLoop(reconciler, cfg.sync_interval_seconds)
    await sync.start()

    credentials = oauth_credentials(cfg.root_url)
    if credentials is None:
        logger.warning("DISCORD_CLIENT_ID/SECRET not set; Discord login disabled")
        app.state.auth = None
    else:
        app.state.auth = AuthExchange(credentials, OAuthStateStore(engine), http)

    logger.info("search6 API started (database %s)", engine.url.database)
    yield

    logger.info("search6 API shutting down")
    sync.stop()
    notifier.stop()
    await http.aclose()
    if session is not None:
        await session.close()


app = FastAPI(
    title="search6",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(auth_router)
app.include_router(public_router)


@app.get("/api/health")
def health():
    return {"status": "ok"}
