"""
search6.constants — Shared Constants & Helpers
================================================

Single source of truth for store key names, CDN URLs and the MEE6 leveling
curve.  Import from here instead of duplicating in services and routes.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Store key scheme
# ---------------------------------------------------------------------------
USER_ID_PREFIX = "user.id:"
USER_SLUG_PREFIX = "user.slug:"

SYNC_PAGE_KEY = "sync:page"
SYNC_RANK_KEY = "sync:rank"


def user_id_key(user_id: int) -> str:
    return f"{USER_ID_PREFIX}{user_id}"


def user_slug_key(slug: str) -> str:
    return f"{USER_SLUG_PREFIX}{slug}"


# A 64-bit snowflake has at most 20 decimal digits.
SNOWFLAKE_MAX_DIGITS = 20


def is_snowflake(value: str) -> bool:
    """True if *value* is a plain ASCII decimal id ``int()`` will accept."""
    return value.isascii() and value.isdigit() and len(value) <= SNOWFLAKE_MAX_DIGITS


def make_slug(username: str, discriminator: str) -> str:
    """``name#discriminator`` — the composite key used for name lookups."""
    return f"{username}#{discriminator}"


# ---------------------------------------------------------------------------
# Discord CDN
# ---------------------------------------------------------------------------
DISCORD_CDN = "https://cdn.discordapp.com"


def avatar_url(user_id: int, avatar_hash: str | None, discriminator: str = "0") -> str:
    """Construct a Discord CDN avatar URL (animated hashes get ``.gif``)."""
    if avatar_hash:
        ext = "gif" if avatar_hash.startswith("a_") else "png"
        return f"{DISCORD_CDN}/avatars/{user_id}/{avatar_hash}.{ext}"
    # Default avatar: legacy accounts key off the discriminator, migrated
    # accounts ("#0") off the snowflake.
    try:
        disc = int(discriminator)
    except ValueError:
        disc = 0
    index = disc % 5 if disc else (user_id >> 22) % 6
    return f"{DISCORD_CDN}/embed/avatars/{index}.png"


# ---------------------------------------------------------------------------
# Leveling formula (MEE6 curve)
# ---------------------------------------------------------------------------
def xp_to_next_level(level: int) -> int:
    """XP needed to go from *level* to ``level + 1`` (MEE6 curve).

    ::

        required = 5 * level² + 50 * level + 100
    """
    return 5 * level * level + 50 * level + 100


def total_xp_for_level(level: int) -> int:
    """Cumulative XP at which *level* is reached."""
    return sum(xp_to_next_level(n) for n in range(level))


@dataclass(frozen=True, slots=True)
class LevelInfo:
    """Level, XP into that level, and fractional progress toward the next."""

    level: int
    xp_into_level: int
    progress: float

    @classmethod
    def from_xp(cls, xp: int) -> LevelInfo:
        level = 0
        remaining = max(xp, 0)
        needed = xp_to_next_level(level)
        while remaining >= needed:
            remaining -= needed
            level += 1
            needed = xp_to_next_level(level)
        return cls(level=level, xp_into_level=remaining, progress=remaining / needed)


def level_for_xp(xp: int) -> int:
    """Shortcut for ``LevelInfo.from_xp(xp).level``."""
    return LevelInfo.from_xp(xp).level
