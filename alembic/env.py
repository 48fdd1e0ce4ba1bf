"""Alembic environment for the FarmOps schema (async SQLAlchemy, asyncpg)."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine

from farmops.config import get_settings

# Import Base from farmops.models (NOT farmops.models.base) so that every
# model module is imported and its tables are registered on Base.metadata.
from farmops.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Created with raw SQL in the initial revision; the ORM metadata does not
# declare them, so autogenerate must not propose dropping them.
UNMANAGED_SCHEMA_OBJECTS = frozenset(
    {
        "ex_crop_cycles_parcel_planned_range",
        "uq_crop_cycles_one_active_per_parcel",
        "ck_crop_cycles_planned_range",
    }
)


def include_object(obj, name, type_, reflected, compare_to):  # type: ignore[no-untyped-def]
    if reflected and compare_to is None and name in UNMANAGED_SCHEMA_OBJECTS:
        return False
    return True


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_settings().database_url


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
        include_object=include_object,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):  # type: ignore[no-untyped-def]
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        include_object=include_object,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    connectable = create_async_engine(_database_url())
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
