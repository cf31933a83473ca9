"""
search6.services.embeds — Discord embed builders for announcements
====================================================================

Embed construction lives here so the notifier only supplies data.
"""

from __future__ import annotations

import discord

from search6.engine.records import ParticipantRecord

CARD_FILENAME = "card.png"


def card_request(root_url: str, user_id: int) -> str:
    """The copy-pasteable card link with a mention, e.g. ``…/card?id=1 <@1>``."""
    return f"{root_url}/card?id={user_id} <@{user_id}>"


def build_level_up_embed(
    record: ParticipantRecord,
    new_level: int,
    root_url: str,
) -> discord.Embed:
    """Build the level-up embed; the rendered card is attached as ``card.png``."""
    embed = discord.Embed(
        title="⚡ Level Up!",
        description=(
            f"User {record.slug} (<@{record.id}>) has reached level {new_level}"
            f"```{card_request(root_url, record.id)}```"
        ),
        color=discord.Color.gold(),
    )
    embed.set_image(url=f"attachment://{CARD_FILENAME}")
    embed.set_thumbnail(url=f"{root_url}/search6.png")
    return embed
