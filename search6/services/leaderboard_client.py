"""
search6.services.leaderboard_client — Upstream Page Fetcher
============================================================

Thin wrapper around MEE6's paginated listing::

    GET <leaderboard-url>?limit=1000&page=N
    → {"players": [{"id": "…", "username": …, "xp": …}, …]}

No retries here: the sync loop simply moves on and the next tick fetches the
next page.  Upstream order (descending XP) is preserved because rank
assignment depends on it.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from search6.engine.records import LeaderboardPage, RawParticipant
from search6.errors import LeaderboardFetchError

logger = logging.getLogger(__name__)


class LeaderboardClient:
    """Fetch single pages of the upstream leaderboard.

    Parameters
    ----------
    http:
        A shared :class:`httpx.AsyncClient`; its timeout applies to every call.
    url:
        The guild's leaderboard endpoint.
    """

    def __init__(self, http: httpx.AsyncClient, url: str) -> None:
        self.http = http
        self.url = url

    async def fetch_page(self, page: int, page_size: int) -> list[RawParticipant]:
        """Return the players on *page*, in upstream order.

        Raises
        ------
        LeaderboardFetchError
            On a transport error, a non-2xx response, or a body that is not
            a leaderboard page.
        """
        try:
            resp = await self.http.get(self.url, params={"limit": page_size, "page": page})
        except httpx.HTTPError as exc:
            raise LeaderboardFetchError(f"Page {page}: {exc!r}") from exc

        if resp.status_code != 200:
            raise LeaderboardFetchError(f"Page {page}: HTTP {resp.status_code}")

        try:
            parsed = LeaderboardPage.model_validate_json(resp.content)
        except ValidationError as exc:
            raise LeaderboardFetchError(f"Page {page}: malformed body") from exc

        logger.debug("Fetched page %d (%d players)", page, len(parsed.players))
        return parsed.players
