"""
search6.errors — Typed Failures
================================

Read-path, authentication and upstream failures.  The API layer maps these
onto HTTP status codes; the sync loop only ever logs them.
"""

from __future__ import annotations


class Search6Error(Exception):
    """Base class for every failure raised by search6."""

    message = "search6 error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
class LookupFailure(Search6Error):
    """A record could not be resolved from the cache."""


class UnknownId(LookupFailure):
    message = "ID not known- May not exist or may not be cached"


class NotRanked(LookupFailure):
    """Raised instead of :class:`UnknownId` when the caller expected a hit."""

    message = "This user is not ranked or may be uncached"


class NoId(LookupFailure):
    message = "You must specify an ID"


# ---------------------------------------------------------------------------
# OAuth2
# ---------------------------------------------------------------------------
class AuthError(Search6Error):
    """Discord login could not be completed."""


class InvalidState(AuthError):
    """The CSRF state never existed, expired, or was already used."""

    message = "Invalid OAuth2 State"


class CodeExchangeFailed(AuthError):
    message = "OAuth2 Code Exchange failed"


class IdentityFetchFailed(AuthError):
    message = "Could not fetch the Discord account for this login"


# ---------------------------------------------------------------------------
# Upstream
# ---------------------------------------------------------------------------
class LeaderboardFetchError(Search6Error):
    """A leaderboard page could not be fetched or decoded."""

    message = "Leaderboard page fetch failed"
