from __future__ import annotations
import asyncio
from logging.config import fileConfig
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context
from banfoo.config import settings
from banfoo.db import Base
# every mapped table must be imported before autogenerate compares metadata
import banfoo.models.team
import banfoo.models.score
import banfoo.models.question
import banfoo.models.completion
import banfoo.models.state

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

def database_url() -> str:
    # `alembic -x db_url=... upgrade head` targets another database without touching env
    return context.get_x_argument(as_dictionary=True).get("db_url") or settings.database_url

def _configure(**kw) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, compare_server_default=True, **kw)

def run_offline() -> None:
    _configure(url=database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()

def _run_sync(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()

async def run_online() -> None:
    engine = create_async_engine(database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync)
    finally:
        await engine.dispose()

if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
