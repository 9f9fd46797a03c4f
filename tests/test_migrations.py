from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from db.base import Base

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


def _alembic_config(url: str) -> Config:
    config = Config(cmd_opts=argparse.Namespace(x=[f"dburl={url}"]))
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    return config


def test_migrations_create_every_crm_table(tmp_path):
    url = f"sqlite+aiosqlite:///{(tmp_path / 'migrated.db').as_posix()}"

    command.upgrade(_alembic_config(url), "head")

    async def table_names():
        engine = create_async_engine(url, poolclass=NullPool)
        try:
            async with engine.connect() as conn:
                return await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
        finally:
            await engine.dispose()

    tables = asyncio.run(table_names())

    assert set(Base.metadata.tables) <= tables
    assert "alembic_version" in tables
