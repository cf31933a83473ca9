"""
tests/test_levels.py — Leveling Curve & Level-Up Detection
============================================================

Covers the MEE6 XP curve, level derivation, default avatar URLs and the
upward-crossing rule used for announcements.
"""

from __future__ import annotations

import pytest

from search6.constants import (
    DISCORD_CDN,
    LevelInfo,
    avatar_url,
    is_snowflake,
    level_for_xp,
    make_slug,
    total_xp_for_level,
    user_id_key,
    user_slug_key,
    xp_to_next_level,
)
from search6.engine.events import crosses_threshold, detect_level_up
from search6.engine.records import ParticipantRecord


def _record(xp: int, user_id: int = 7) -> ParticipantRecord:
    return ParticipantRecord(
        xp=xp, id=user_id, username="Someone", discriminator="1234", rank=1,
    )


# ===========================================================================
# XP curve
# ===========================================================================
class TestCurve:
    @pytest.mark.parametrize(
        "level, required",
        [(0, 100), (1, 155), (2, 220), (3, 295), (4, 380), (10, 1100)],
    )
    def test_xp_to_next_level(self, level, required):
        assert xp_to_next_level(level) == required

    @pytest.mark.parametrize(
        "level, total",
        [(0, 0), (1, 100), (2, 255), (3, 475), (4, 770), (5, 1150), (6, 1625)],
    )
    def test_total_xp_for_level(self, level, total):
        assert total_xp_for_level(level) == total

    @pytest.mark.parametrize(
        "xp, level",
        [
            (0, 0),
            (99, 0),
            (100, 1),
            (769, 3),
            (770, 4),
            (900, 4),
            (1149, 4),
            (1150, 5),
            (1500, 5),
            (1625, 6),
        ],
    )
    def test_level_for_xp(self, xp, level):
        assert level_for_xp(xp) == level

    def test_level_info_progress(self):
        info = LevelInfo.from_xp(900)
        assert info.level == 4
        assert info.xp_into_level == 130
        assert info.progress == pytest.approx(130 / 380)

    def test_negative_xp_treated_as_zero(self):
        assert LevelInfo.from_xp(-50) == LevelInfo(level=0, xp_into_level=0, progress=0.0)


# ===========================================================================
# Key scheme & avatars
# ===========================================================================
class TestKeys:
    def test_keys(self):
        assert user_id_key(42) == "user.id:42"
        assert user_slug_key("Someone#1234") == "user.slug:Someone#1234"
        assert make_slug("Some One", "0") == "Some One#0"

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("302094807046684672", True),
            ("18446744073709551615", True),
            ("9" * 21, False),
            ("²", False),
            ("١٢٣", False),
            ("", False),
            ("-1", False),
            ("Someone#1234", False),
        ],
    )
    def test_is_snowflake(self, value, expected):
        assert is_snowflake(value) is expected


class TestAvatarUrl:
    def test_static_hash(self):
        assert avatar_url(1, "abc") == f"{DISCORD_CDN}/avatars/1/abc.png"

    def test_animated_hash(self):
        assert avatar_url(1, "a_abc") == f"{DISCORD_CDN}/avatars/1/a_abc.gif"

    def test_default_from_discriminator(self):
        assert avatar_url(1, None, "1234") == f"{DISCORD_CDN}/embed/avatars/4.png"

    def test_default_from_snowflake(self):
        user_id = 302094807046684672
        expected = (user_id >> 22) % 6
        assert avatar_url(user_id, None, "0") == f"{DISCORD_CDN}/embed/avatars/{expected}.png"


# ===========================================================================
# Level-up detection
# ===========================================================================
class TestCrossesThreshold:
    @pytest.mark.parametrize(
        "previous, new, expected",
        [
            (4, 5, True),
            (0, 9, True),
            (5, 6, False),  # already past it
            (4, 4, False),
            (6, 3, False),  # regression
            (3, 4, False),
        ],
    )
    def test_crossing(self, previous, new, expected):
        assert crosses_threshold(previous, new, 5) is expected


class TestDetectLevelUp:
    def test_event_on_crossing(self):
        event = detect_level_up(_record(900), _record(1500), threshold=5)
        assert event is not None
        assert event.user_id == 7
        assert event.previous_level == 4
        assert event.new_level == 5
        assert event.record.xp == 1500

    def test_no_event_when_already_above(self):
        assert detect_level_up(_record(1500), _record(2000), threshold=5) is None

    def test_xp_regression_tolerated(self):
        assert detect_level_up(_record(1500), _record(900), threshold=5) is None
