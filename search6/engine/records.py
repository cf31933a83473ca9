"""
search6.engine.records — Upstream & Cached Participant Models
==============================================================

``RawParticipant`` mirrors one entry of MEE6's ``players`` array.
``ParticipantRecord`` is what the cache stores under ``user.id:<id>``:
the upstream fields plus the rank this service assigned and the time the
record was last synced.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from search6.constants import is_snowflake, make_slug


class RawParticipant(BaseModel):
    """A leaderboard entry exactly as MEE6 returns it."""

    model_config = ConfigDict(extra="ignore")

    id: str
    username: str
    discriminator: str = "0"
    xp: int = Field(ge=0)
    avatar: str | None = None
    message_count: int | None = None


class LeaderboardPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    players: list[RawParticipant] = Field(default_factory=list)


class ParticipantRecord(BaseModel):
    """Cached snapshot of one participant.

    ``rank`` is only meaningful relative to the most recently completed
    sync cycle.  ``last_updated`` is a Unix timestamp in milliseconds.
    """

    xp: int
    id: int
    username: str
    discriminator: str
    avatar: str | None = None
    message_count: int | None = None
    rank: int
    last_updated: int | None = None

    @property
    def slug(self) -> str:
        return make_slug(self.username, self.discriminator)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> ParticipantRecord:
        """Decode a cached value.  Raises ``pydantic.ValidationError``."""
        return cls.model_validate_json(raw)

    @classmethod
    def from_raw(cls, player: RawParticipant, *, rank: int, synced_at_ms: int) -> ParticipantRecord:
        """Stamp an upstream entry with its rank and sync time.

        Raises
        ------
        ValueError
            If the upstream id is not a decimal snowflake.
        """
        if not is_snowflake(player.id):
            raise ValueError(f"Non-numeric participant id: {player.id!r}")
        return cls(
            xp=player.xp,
            id=int(player.id),
            username=player.username,
            discriminator=player.discriminator,
            avatar=player.avatar,
            message_count=player.message_count,
            rank=rank,
            last_updated=synced_at_ms,
        )
