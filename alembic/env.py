"""Alembic environment for the search6 cache tables.

The database URL comes from ``DATABASE_URL`` (``.env`` is honoured) and
falls back to ``sqlalchemy.url`` in ``alembic.ini``.  Autogenerate only
considers the tables search6 owns, so the cache can share a database with
other applications.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

from alembic import context
from search6.database.models import Base

load_dotenv()

alembic_cfg = context.config
if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)

OWNED_TABLES = frozenset(Base.metadata.tables)


def _database_url() -> str:
    url = os.getenv("DATABASE_URL") or alembic_cfg.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("Set DATABASE_URL (or sqlalchemy.url in alembic.ini)")
    return url


def _include_name(name, type_, parent_names) -> bool:
    """Skip foreign tables when autogenerating."""
    if type_ == "table":
        return name in OWNED_TABLES
    return True


def _shared_options(dialect_name: str) -> dict:
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        "include_name": _include_name,
        # SQLite cannot ALTER most constraints in place
        "render_as_batch": dialect_name == "sqlite",
    }


def migrate_offline(url: str) -> None:
    """Print the migration SQL instead of executing it."""
    dialect_name = url.split(":", 1)[0].split("+", 1)[0]
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_shared_options(dialect_name),
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_online(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **_shared_options(connection.dialect.name))
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    migrate_offline(_database_url())
else:
    migrate_online(_database_url())
