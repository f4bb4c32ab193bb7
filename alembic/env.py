"""Alembic environment for the localweb site store."""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from localweb.db.base import Base
from localweb.db import models  # noqa: F401  registers tables on Base.metadata
from localweb.db.session import render_sync_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

raw_url = config.get_main_option("sqlalchemy.url") or os.getenv("LOCALWEB_DB_URL")
if not raw_url:
    raise RuntimeError("No database URL configured for Alembic migrations.")
config.set_main_option("sqlalchemy.url", render_sync_url(raw_url))

# SQLite cannot ALTER most constraints in place.
migration_options = {"target_metadata": Base.metadata, "render_as_batch": True}

if context.is_offline_mode():
    context.configure(url=config.get_main_option("sqlalchemy.url"), **migration_options)
    with context.begin_transaction():
        context.run_migrations()
else:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **migration_options)
        with context.begin_transaction():
            context.run_migrations()
