"""
tests/test_engine.py — Engine Creation & Async Bridge
=======================================================
"""

from __future__ import annotations

import asyncio
import threading

import pytest
from sqlalchemy import inspect

from search6.database.engine import create_db_engine, get_session, init_db, run_db
from search6.database.models import CacheEntry


class TestCreateEngine:
    def test_missing_url(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            create_db_engine()

    def test_sqlite_file_for_local_runs(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'search6.db'}")
        init_db(engine)
        assert {"cache_entries", "sync_counters", "oauth_states"} <= set(
            inspect(engine).get_table_names()
        )

    def test_reads_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")
        assert create_db_engine().url.database.endswith("env.db")


class TestSession:
    def test_rolls_back_on_error(self, db_engine):
        with pytest.raises(ValueError):
            with get_session(db_engine) as session:
                session.add(CacheEntry(key="k", value="v"))
                session.flush()
                raise ValueError("abort")
        with get_session(db_engine) as session:
            assert session.get(CacheEntry, "k") is None


class TestRunDb:
    def test_runs_off_the_event_loop_thread(self):
        main_thread = threading.get_ident()

        async def go():
            return await run_db(lambda x, y=0: (threading.get_ident(), x + y), 1, y=2)

        worker_thread, total = asyncio.run(go())
        assert total == 3
        assert worker_thread != main_thread
