from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from tagcatalog.core.config import load_settings  # noqa: E402
from tagcatalog.core.logging import get_logger, mask_url_credentials  # noqa: E402
from tagcatalog.db.engine import sqlite_file_path  # noqa: E402
from tagcatalog.db.models.base import Base  # noqa: E402

log = get_logger("tagcatalog.migrations")

target_metadata = Base.metadata


def catalog_sync_url() -> str:
    """DATABASE_URL from app settings, else the ini's ``sqlalchemy.url``; always a sync driver."""
    settings = load_settings()
    if (os.environ.get("DATABASE_URL") or "").strip():
        url = settings.database_url
    else:
        url = (config.get_main_option("sqlalchemy.url") or "").strip() or settings.database_url

    url = url.replace("+aiosqlite", "")
    db_path = sqlite_file_path(url)
    if db_path is not None:
        db_path.resolve().parent.mkdir(parents=True, exist_ok=True)
    log.info("migrations_target url=%s", mask_url_credentials(url))
    return url


def run_migrations_offline() -> None:
    url = catalog_sync_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = catalog_sync_url()
    # foreign_keys stays off here: batch table rebuilds would cascade into image_tags.
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        url=url,
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=url.startswith("sqlite"),
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
