"""
search6.api.deps — FastAPI dependency injection
=================================================
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import Engine

from search6.config import Search6Config, load_config
from search6.database.engine import create_db_engine
from search6.services.auth_exchange import AuthExchange
from search6.services.kv_store import KeyValueStore
from search6.services.record_store import RecordStore
from search6.services.sync_cursor import SyncCursor


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> Search6Config:
    return load_config(os.getenv("SEARCH6_CONFIG", "config.yaml"))


def get_record_store(engine: Annotated[Engine, Depends(get_engine)]) -> RecordStore:
    return RecordStore(KeyValueStore(engine))


def get_sync_cursor(engine: Annotated[Engine, Depends(get_engine)]) -> SyncCursor:
    return SyncCursor(KeyValueStore(engine))


def get_auth(request: Request) -> AuthExchange:
    """The login exchange, or 503 when OAuth credentials are not configured."""
    auth: AuthExchange | None = getattr(request.app.state, "auth", None)
    if auth is None:
        raise HTTPException(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Discord login is not configured on this server",
        )
    return auth
