"""
Alembic env - migrations run on a sync driver.
Production uses psycopg2 for the asyncpg URL; local SQLite databases use
batch mode since SQLite cannot ALTER most constraints in place.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

import marketplace.db.models  # noqa: F401 - registers every table on Base.metadata
from marketplace.config import get_settings
from marketplace.db.base import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg2",
    "sqlite+aiosqlite": "sqlite",
}


def sync_database_url(url: str) -> str:
    for async_driver, sync_driver in SYNC_DRIVERS.items():
        if url.startswith(async_driver):
            return sync_driver + url[len(async_driver):]
    return url


database_url = sync_database_url(get_settings().database_url)
config.set_main_option("sqlalchemy.url", database_url)
target_metadata = Base.metadata

migration_options = {
    "target_metadata": target_metadata,
    "compare_type": True,
    "render_as_batch": database_url.startswith("sqlite"),
}


def run_migrations_offline() -> None:
    """Emit SQL without a connection (alembic upgrade --sql)."""
    context.configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **migration_options,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **migration_options)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
