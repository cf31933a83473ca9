"""
search6.services.kv_store — Key/Value Access over SQL
======================================================

The small surface the sync engine needs from its backing store:

- ``get`` / ``mget`` — read cached values
- ``mset`` — overwrite many values in **one transaction**
- ``incr`` / ``set_nx`` / ``set_counters`` — atomic integer counters

Writes use ``INSERT … ON CONFLICT … DO UPDATE`` so each key is replaced
whole; PostgreSQL and SQLite (tests) both accept the syntax.

All methods are synchronous — call via ``await run_db(kv.method, ...)``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from sqlalchemy import Engine, select, text

from search6.database.engine import get_session
from search6.database.models import CacheEntry, SyncCounter

logger = logging.getLogger(__name__)

# Keep IN (...) lists well below SQLite's bound-parameter limit
_MGET_CHUNK = 500

_UPSERT_ENTRY = text("""
    INSERT INTO cache_entries (key, value)
    VALUES (:key, :value)
    ON CONFLICT (key)
    DO UPDATE SET value = excluded.value
""")

_INCR_COUNTER = text("""
    INSERT INTO sync_counters (name, value)
    VALUES (:name, :amount)
    ON CONFLICT (name)
    DO UPDATE SET value = sync_counters.value + :amount
""")

_SETNX_COUNTER = text("""
    INSERT INTO sync_counters (name, value)
    VALUES (:name, :value)
    ON CONFLICT (name) DO NOTHING
""")

_SET_COUNTER = text("""
    INSERT INTO sync_counters (name, value)
    VALUES (:name, :value)
    ON CONFLICT (name)
    DO UPDATE SET value = excluded.value
""")


class KeyValueStore:
    """Redis-style access to the ``cache_entries`` and ``sync_counters`` tables."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # -------------------------------------------------------------------
    # Cached values
    # -------------------------------------------------------------------
    def get(self, key: str) -> str | None:
        with get_session(self.engine) as session:
            row = session.get(CacheEntry, key)
            return row.value if row else None

    def mget(self, keys: Iterable[str]) -> dict[str, str]:
        """Return ``{key: value}`` for every key that exists."""
        wanted = list(dict.fromkeys(keys))
        found: dict[str, str] = {}
        if not wanted:
            return found
        with get_session(self.engine) as session:
            for start in range(0, len(wanted), _MGET_CHUNK):
                chunk = wanted[start:start + _MGET_CHUNK]
                rows = session.execute(
                    select(CacheEntry.key, CacheEntry.value).where(CacheEntry.key.in_(chunk))
                ).all()
                found.update({row.key: row.value for row in rows})
        return found

    def mset(self, pairs: Sequence[tuple[str, str]]) -> None:
        """Overwrite every ``(key, value)`` pair atomically.

        Either all pairs become visible or none do.
        """
        if not pairs:
            return
        with get_session(self.engine) as session:
            session.execute(
                _UPSERT_ENTRY,
                [{"key": key, "value": value} for key, value in pairs],
            )

    # -------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------
    def get_counter(self, name: str) -> int | None:
        with get_session(self.engine) as session:
            row = session.get(SyncCounter, name)
            return int(row.value) if row else None

    def incr(self, name: str, amount: int = 1) -> int:
        """Atomically add *amount* (a missing counter starts at 0) and
        return the new value.
        """
        with get_session(self.engine) as session:
            session.execute(_INCR_COUNTER, {"name": name, "amount": amount})
            return int(
                session.scalar(select(SyncCounter.value).where(SyncCounter.name == name))
            )

    def set_nx(self, name: str, value: int) -> None:
        """Create the counter with *value* only if it does not exist yet."""
        with get_session(self.engine) as session:
            session.execute(_SETNX_COUNTER, {"name": name, "value": value})

    def set_counters(self, values: Mapping[str, int]) -> None:
        """Overwrite several counters in one transaction."""
        if not values:
            return
        with get_session(self.engine) as session:
            session.execute(
                _SET_COUNTER,
                [{"name": name, "value": value} for name, value in values.items()],
            )
