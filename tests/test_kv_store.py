"""
tests/test_kv_store.py — Key/Value Store over SQLite
======================================================

Tests whole-value upserts, batched reads and the atomic counters the sync
cursor is built on.
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError


class TestValues:
    def test_get_missing_returns_none(self, kv):
        assert kv.get("user.id:1") is None

    def test_mset_then_get(self, kv):
        kv.mset([("a", "1"), ("b", "2")])
        assert kv.get("a") == "1"
        assert kv.get("b") == "2"

    def test_mset_overwrites_whole_value(self, kv):
        kv.mset([("a", '{"xp": 1}')])
        kv.mset([("a", '{"xp": 2}')])
        assert kv.get("a") == '{"xp": 2}'

    def test_mset_empty_is_noop(self, kv):
        kv.mset([])
        assert kv.mget(["a"]) == {}

    def test_mget_omits_missing_keys(self, kv):
        kv.mset([("a", "1"), ("c", "3")])
        assert kv.mget(["a", "b", "c"]) == {"a": "1", "c": "3"}

    def test_mget_spans_chunks(self, kv):
        pairs = [(f"k{i}", str(i)) for i in range(1200)]
        kv.mset(pairs)
        found = kv.mget(key for key, _ in pairs)
        assert len(found) == 1200
        assert found["k1199"] == "1199"

    def test_mset_is_all_or_nothing(self, kv):
        """A failing pair rolls back the pairs before it."""
        with pytest.raises(IntegrityError):
            kv.mset([("good", "1"), ("bad", None)])
        assert kv.get("good") is None


class TestCounters:
    def test_incr_creates_missing_counter(self, kv):
        assert kv.incr("sync:page") == 1
        assert kv.incr("sync:page") == 2

    def test_incr_by_amount(self, kv):
        kv.set_nx("sync:rank", 1)
        assert kv.incr("sync:rank", 250) == 251
        assert kv.get_counter("sync:rank") == 251

    def test_get_counter_missing(self, kv):
        assert kv.get_counter("nope") is None

    def test_set_nx_does_not_overwrite(self, kv):
        kv.set_nx("sync:page", 0)
        kv.incr("sync:page", 3)
        kv.set_nx("sync:page", 0)
        assert kv.get_counter("sync:page") == 3

    def test_set_counters(self, kv):
        kv.incr("sync:page", 9)
        kv.set_counters({"sync:page": 0, "sync:rank": 1})
        assert kv.get_counter("sync:page") == 0
        assert kv.get_counter("sync:rank") == 1
