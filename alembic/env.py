"""Migration environment for the receptionist CRM store.

Covers the lead, visit, calendar-event, call-log, media-log and reference
tables declared in ``db.models``. The target database comes from
``Settings.database_url`` unless overridden on the command line with
``alembic -x dburl=sqlite+aiosqlite:///other.db upgrade head``.
"""

from __future__ import annotations

import asyncio
import sys
from logging.config import fileConfig
from pathlib import Path
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from config.settings import get_settings  # noqa: E402
from db.base import Base  # noqa: E402

import db.models  # noqa: F401,E402

CRM_METADATA = Base.metadata


def crm_database_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("dburl")
    return override or get_settings().database_url


def configure_crm_context(url: str, **options: Any) -> None:
    # SQLite cannot ALTER columns in place, so revisions go through batch mode there.
    context.configure(
        target_metadata=CRM_METADATA,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **options,
    )


def migrate_crm_offline(url: str) -> None:
    configure_crm_context(url, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _migrate_on_connection(connection, url: str) -> None:
    configure_crm_context(url, connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_crm_online(url: str) -> None:
    engine: AsyncEngine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate_on_connection, url)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    migrate_crm_offline(crm_database_url())
else:
    asyncio.run(migrate_crm_online(crm_database_url()))
