"""Alembic environment for the ``authentication`` schema.

Migrations use the async PostgreSQL URL of the application settings, never
the ``sqlalchemy.url`` of ``alembic.ini``. Autogenerate compares against the
metadata of ``src.infrastructure.database.models``.
"""

import asyncio
import logging
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from src.core.config import get_settings
from src.infrastructure.database import models  # noqa: F401 - registers tables
from src.infrastructure.database.base import Base

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata

# Enum and server default changes must show up in autogenerated revisions
COMPARE_OPTIONS: dict[str, Any] = {
    "compare_type": True,
    "compare_server_default": True,
}


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting to the database."""
    database_url = get_settings().database_config.database_url
    logger.info("Generating migration SQL offline")

    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def _apply_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection, target_metadata=target_metadata, **COMPARE_OPTIONS
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Apply migrations through a short-lived async engine.

    The engine uses ``NullPool``: every migration run opens and closes its
    own connection.
    """
    db_config = get_settings().database_config
    logger.info("Applying migrations to the configured database")

    engine = async_engine_from_config(
        {"sqlalchemy.url": db_config.database_url, "sqlalchemy.echo": db_config.echo},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_apply_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
