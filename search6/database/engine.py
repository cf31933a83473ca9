"""
search6.database.engine — Database Connection & Async Helper
=============================================================

The web app and the sync loop run on an ``asyncio`` event loop while
SQLAlchemy + psycopg2 is **synchronous**.  Store access therefore goes
through :func:`run_db`, which ships the synchronous function to a thread
pool so the event loop keeps serving lookups while a page batch commits.

Usage::

    from search6.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside a coroutine:
    record = await run_db(store.get_record, user_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import URL, Engine, create_engine, make_url
from sqlalchemy.orm import Session

from search6.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# Pooled connections for PostgreSQL: the sync loop plus concurrent lookups,
# with burst headroom, stale-connection checks and hourly recycling.
_SERVER_POOL = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_pre_ping": True,
    "pool_timeout": 10,
    "pool_recycle": 3600,
}


def _engine_options(url: URL) -> dict:
    """SQLite (local development) shares one file across the sync thread and
    request threads; everything else gets the server pool.
    """
    if url.get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return dict(_SERVER_POOL)


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine` from *url* or ``DATABASE_URL``.

    Raises
    ------
    RuntimeError
        If no URL is given and ``DATABASE_URL`` is not set.
    """
    raw_url = url or os.getenv("DATABASE_URL")
    if not raw_url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example to .env and point it at PostgreSQL "
            "(or sqlite:///search6.db for local runs)."
        )

    parsed = make_url(raw_url)
    engine = create_engine(parsed, echo=False, **_engine_options(parsed))
    logger.info(
        "Database engine created (%s, %s)",
        parsed.get_backend_name(), parsed.host or parsed.database,
    )
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`search6.database.models`.

    Safe to call on every startup.  In production the schema is managed by
    Alembic (``alembic upgrade head``); this is the dev/test safety net.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.
    """
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    ::

        result = await run_db(my_sync_db_function, arg1, arg2)

    Under the hood it calls :func:`asyncio.to_thread`, which schedules
    *func* on the default ``ThreadPoolExecutor``.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
