"""
search6.engine.events — Level-Up Events
=========================================

A :class:`LevelUpEvent` is produced while reconciling a page, handed to the
notifier queue, and then forgotten.  It is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass

from search6.constants import level_for_xp
from search6.engine.records import ParticipantRecord


@dataclass(frozen=True, slots=True)
class LevelUpEvent:
    """A participant crossed the notification level between two syncs."""

    user_id: int
    record: ParticipantRecord
    previous_level: int
    new_level: int


def crosses_threshold(previous_level: int, new_level: int, threshold: int) -> bool:
    """True only for an upward crossing: ``previous < threshold <= new``."""
    return previous_level < threshold <= new_level


def detect_level_up(
    previous: ParticipantRecord,
    current: ParticipantRecord,
    threshold: int,
) -> LevelUpEvent | None:
    """Compare two snapshots of the same participant.

    XP regressions are tolerated and simply never qualify.
    """
    previous_level = level_for_xp(previous.xp)
    new_level = level_for_xp(current.xp)
    if not crosses_threshold(previous_level, new_level, threshold):
        return None
    return LevelUpEvent(
        user_id=current.id,
        record=current,
        previous_level=previous_level,
        new_level=new_level,
    )
