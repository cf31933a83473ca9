"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from search6.database.models import Base
from search6.services.kv_store import KeyValueStore
from search6.services.record_store import RecordStore
from search6.services.sync_cursor import SyncCursor


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all search6 tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in :func:`run_db`).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def kv(db_engine: Engine) -> KeyValueStore:
    return KeyValueStore(db_engine)


@pytest.fixture
def store(kv: KeyValueStore) -> RecordStore:
    return RecordStore(kv)


@pytest.fixture
def cursor(kv: KeyValueStore) -> SyncCursor:
    c = SyncCursor(kv)
    c.ensure()
    return c
