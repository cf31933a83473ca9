"""
search6.__main__ — Entry point for ``python -m search6``
=========================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (infrastructure settings).
3. Serve the API; its lifespan creates missing tables, then starts the
   sync loop and the notifier.
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from search6.api.deps import get_config

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("search6")


def main() -> None:
    """Bootstrap and serve search6."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Infrastructure configuration.
    cfg = get_config()
    logger.info("Config loaded: guild %d, public URL %s", cfg.guild_id, cfg.root_url)

    # 3. Serve (blocks until Ctrl+C or SIGTERM).
    logger.info("Listening on http://0.0.0.0:%d/", cfg.listen_port)
    uvicorn.run("search6.api.main:app", host="0.0.0.0", port=cfg.listen_port, log_config=None)


if __name__ == "__main__":
    main()
