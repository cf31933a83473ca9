"""
search6.services.oauth_state — Single-Use Expiring State Map
==============================================================

Holds ``csrf token → PKCE verifier`` between the login redirect and the
OAuth callback.  Entries expire after :data:`OAUTH_STATE_TTL_SECONDS` and
:meth:`OAuthStateStore.take` removes the entry it returns, so a state can be
redeemed at most once.  Expiry is enforced here, not by the database.

All methods are synchronous — call via ``await run_db(states.method, ...)``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy import Engine, delete

from search6.database.engine import get_session
from search6.database.models import OAuthState

logger = logging.getLogger(__name__)

OAUTH_STATE_TTL_SECONDS = 600


def _utcnow() -> datetime:
    return datetime.now(UTC)


class OAuthStateStore:
    """Expiring map with an atomic get-and-delete."""

    def __init__(
        self,
        engine: Engine,
        ttl_seconds: int = OAUTH_STATE_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.engine = engine
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def _cutoff(self) -> datetime:
        return self.clock() - timedelta(seconds=self.ttl_seconds)

    def put(self, state: str, verifier: str) -> None:
        """Store *verifier* under *state* and prune stale entries."""
        with get_session(self.engine) as session:
            session.execute(delete(OAuthState).where(OAuthState.created_at < self._cutoff()))
            session.add(OAuthState(state=state, verifier=verifier, created_at=self.clock()))

    def take(self, state: str) -> str | None:
        """Pop the verifier for *state*.

        Returns ``None`` if the state never existed, has expired, or was
        already taken.  Two concurrent takes of the same state cannot both
        succeed: only the one whose DELETE removes the row wins.
        """
        cutoff = self._cutoff()
        with get_session(self.engine) as session:
            session.execute(delete(OAuthState).where(OAuthState.created_at < cutoff))
            row = session.get(OAuthState, state)
            if row is None:
                return None
            verifier = row.verifier
            removed = session.execute(
                delete(OAuthState).where(OAuthState.state == state)
            ).rowcount
        if removed != 1:
            logger.info("OAuth state %s... was consumed concurrently", state[:8])
            return None
        return verifier
