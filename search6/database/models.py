"""
search6.database.models — SQLAlchemy 2.0 Data Models
=====================================================

Tables:
- cache_entries  — Key/value snapshot store (``user.id:*``, ``user.slug:*``)
- sync_counters  — Integer counters for the sync cursor (``sync:page``, ``sync:rank``)
- oauth_states   — Short-lived CSRF state → PKCE verifier map
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all search6 ORM models."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# CacheEntry: one key, one whole-value overwrite
# ---------------------------------------------------------------------------
class CacheEntry(Base):
    """A single cached value.

    Participant snapshots live under ``user.id:<id>`` as JSON; the name
    index lives under ``user.slug:<name>#<discriminator>`` as the id string.
    Values are only ever replaced whole, never patched.
    """

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(256), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<CacheEntry key={self.key!r}>"


# ---------------------------------------------------------------------------
# SyncCounter: atomically incremented integers
# ---------------------------------------------------------------------------
class SyncCounter(Base):
    __tablename__ = "sync_counters"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<SyncCounter {self.name}={self.value}>"


# ---------------------------------------------------------------------------
# OAuthState: single-use PKCE verifier keyed by CSRF token
# ---------------------------------------------------------------------------
class OAuthState(Base):
    __tablename__ = "oauth_states"

    state: Mapped[str] = mapped_column(String(128), primary_key=True)
    verifier: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_oauth_states_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<OAuthState state={self.state[:8]!r}...>"
