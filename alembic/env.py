import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from listings_hub.core.config import settings
from listings_hub.models import AuditLog, Base, Listing  # noqa: F401


config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# `alembic -x db_url=... upgrade head` targets another database than DATABASE_URL
DB_URL = context.get_x_argument(as_dictionary=True).get("db_url") or settings.database_url


def _configure(**kw):
    context.configure(target_metadata=target_metadata, compare_type=True, **kw)


def run_migrations_offline():
    _configure(url=DB_URL, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    connectable = create_async_engine(DB_URL, poolclass=pool.NullPool)
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
