"""
search6 — Cached MEE6 Leaderboard Lookups for Discord
======================================================
MEE6 only publishes its leaderboard as a paginated bulk listing.  search6
keeps a local copy that can be queried by user id or ``name#discriminator``,
resynchronizes it page by page in the background, and announces members who
cross the notification level through a Discord webhook.

Package layout::

    search6/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # MEE6 level curve, store keys, avatar URLs
    ├── errors.py          # Typed lookup / auth / fetch failures
    ├── cli.py             # search6-lookup command
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # cache_entries, sync_counters, oauth_states
    ├── engine/
    │   ├── records.py     # Upstream + cached participant models
    │   └── events.py      # LevelUpEvent + threshold detection
    ├── services/
    │   ├── kv_store.py        # get / mget / mset / incr over SQL
    │   ├── record_store.py    # Participant records + name index
    │   ├── sync_cursor.py     # Durable page / rank cursor
    │   ├── leaderboard_client.py  # Upstream page fetcher
    │   ├── reconciler.py      # One page fetch-and-merge step
    │   ├── sync_loop.py       # Fixed-interval driver
    │   ├── notifier.py        # Level-up webhook queue + workers
    │   ├── embeds.py          # Discord embed builders
    │   ├── oauth_state.py     # TTL'd single-use PKCE verifier store
    │   └── auth_exchange.py   # Discord OAuth2 + PKCE code exchange
    └── api/
        ├── main.py        # FastAPI app + background wiring
        ├── auth.py        # Discord OAuth2 (PKCE) login
        ├── deps.py        # Dependency injection
        └── routes/        # Public JSON lookup
"""

__version__ = "0.1.0"
