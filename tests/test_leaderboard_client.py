"""
tests/test_leaderboard_client.py — Upstream Page Fetcher
==========================================================

Uses ``httpx.MockTransport`` so no network is touched.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from search6.errors import LeaderboardFetchError
from search6.services.leaderboard_client import LeaderboardClient

URL = "https://mee6.example/api/plugins/levels/leaderboard/1"


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


def _fetch(handler, page: int = 0, page_size: int = 1000):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await LeaderboardClient(http, URL).fetch_page(page, page_size)
    return run_async(go())


class TestFetchPage:
    def test_returns_players_in_order(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "players": [
                    {"id": "1", "username": "a", "discriminator": "0001", "xp": 900},
                    {"id": "2", "username": "b", "discriminator": "0002", "xp": 800},
                ],
                "page": 3,
            })

        players = _fetch(handler, page=3, page_size=1000)
        assert [p.id for p in players] == ["1", "2"]
        assert seen["params"] == {"limit": "1000", "page": "3"}

    def test_non_200_raises(self):
        with pytest.raises(LeaderboardFetchError, match="HTTP 429"):
            _fetch(lambda request: httpx.Response(429, json={"error": "slow down"}))

    def test_malformed_body_raises(self):
        with pytest.raises(LeaderboardFetchError, match="malformed"):
            _fetch(lambda request: httpx.Response(200, text="<html>oops</html>"))

    def test_bad_entry_rejects_whole_page(self):
        body = {"players": [{"id": "1", "username": "a", "xp": -5}]}
        with pytest.raises(LeaderboardFetchError):
            _fetch(lambda request: httpx.Response(200, json=body))

    def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(LeaderboardFetchError):
            _fetch(handler)
