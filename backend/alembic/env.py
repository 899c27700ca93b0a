"""
Alembic Migration Environment
==============================

What:  Applies the users/contacts schema through the application's own
       async engine settings.
How:   DATABASE_URL is read from contactbook.config, never from alembic.ini.
       Online runs open a NullPool async engine and hand a sync-facing
       connection to Alembic via run_sync(); offline runs only render SQL.
Who:   `alembic upgrade head`, `alembic downgrade -1`, `alembic upgrade head --sql`

SQLite (local runs) gets batch mode, since it rebuilds tables instead of
altering constraints in place.
"""

import asyncio
from logging.config import fileConfig
from typing import Any, Dict

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

import contactbook.models  # noqa: F401  (populates Base.metadata)
from contactbook.config import settings
from contactbook.database import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _configure_options(dialect_name: str) -> Dict[str, Any]:
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        "render_as_batch": dialect_name == "sqlite",
    }


def run_migrations_offline() -> None:
    """Render the migration SQL to stdout without a database connection."""
    url = settings.database_url
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url.split(":", 1)[0].split("+", 1)[0]),
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_configure_options(connection.dialect.name))
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
