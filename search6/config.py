"""
search6.config — YAML Configuration Loader
===========================================

Reads ``config.yaml`` for **infrastructure-only** settings (guild, public
URL, sync pacing, notification threshold).  Secrets (database URL, OAuth
client credentials, webhook URL) stay in the environment / ``.env``.

Usage::

    from search6.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.guild_id)          # 302094807046684672
    print(cfg.leaderboard_endpoint)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

MEE6_LEADERBOARD_URL = "https://mee6.xyz/api/plugins/levels/leaderboard/{guild_id}"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Search6Config:
    """Immutable configuration loaded from ``config.yaml``."""

    # Discord
    guild_id: int

    # Public base URL this service is reachable at (no trailing slash)
    root_url: str

    # HTTP server
    listen_port: int = 8080

    # Sync pacing
    page_size: int = 1000
    sync_interval_seconds: float = 3.0
    min_xp: int = 100  # Anything below this marks the end of the listing

    # Notifications
    notify_level: int = 5
    notify_queue_size: int = 256
    notify_workers: int = 2

    # Upstream calls
    http_timeout_seconds: float = 10.0

    # Optional overrides
    leaderboard_url: str | None = None
    card_url: str | None = None

    @property
    def leaderboard_endpoint(self) -> str:
        """The MEE6 listing URL for :attr:`guild_id` unless overridden."""
        if self.leaderboard_url:
            return self.leaderboard_url
        return MEE6_LEADERBOARD_URL.format(guild_id=self.guild_id)

    @property
    def card_endpoint(self) -> str:
        """Where the rank-card renderer is served.

        search6 does not render cards itself.  Without ``card_url`` the
        renderer must be reachable at ``<root_url>/card`` (e.g. behind the
        same reverse proxy), otherwise every announcement fails to render.
        """
        return self.card_url or f"{self.root_url}/card"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> Search6Config:
    """Read *path* and return a :class:`Search6Config` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    sync: dict = raw.get("sync") or {}
    notify: dict = raw.get("notify") or {}

    return Search6Config(
        guild_id=int(raw["guild_id"]),
        root_url=str(raw["root_url"]).rstrip("/"),
        listen_port=int(raw.get("listen_port", 8080)),
        page_size=int(sync.get("page_size", 1000)),
        sync_interval_seconds=float(sync.get("interval_seconds", 3.0)),
        min_xp=int(sync.get("min_xp", 100)),
        notify_level=int(notify.get("level", 5)),
        notify_queue_size=int(notify.get("queue_size", 256)),
        notify_workers=int(notify.get("workers", 2)),
        http_timeout_seconds=float(raw.get("http_timeout_seconds", 10.0)),
        leaderboard_url=raw.get("leaderboard_url") or None,
        card_url=raw.get("card_url") or None,
    )
