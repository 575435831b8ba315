import asyncio
import logging
from logging.config import fileConfig
from time import perf_counter

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

config = context.config

if config.config_file_name is not None:
  fileConfig(config.config_file_name)

# Models must be imported so they are attached to Base.metadata.
import techpulse.schema.contacts  # noqa: E402, F401
import techpulse.schema.push_subscriptions  # noqa: E402, F401
from techpulse.config import get_database_settings  # noqa: E402
from techpulse.core.database import Base, database_url  # noqa: E402

target_metadata = Base.metadata
DATABASE_URL = database_url(get_database_settings())

_migration_logger = logging.getLogger("alembic.runtime.migration")


def _require_url() -> str:
  if not DATABASE_URL:
    raise RuntimeError("TECHPULSE_PG_DSN (or DATABASE_URL) must be set to run migrations.")
  return DATABASE_URL


def run_migrations_offline() -> None:
  """Emit SQL for the configured database without connecting."""
  context.configure(url=_require_url(), target_metadata=target_metadata, literal_binds=True, dialect_opts={"paramstyle": "named"}, compare_type=True)

  with context.begin_transaction():
    context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
  """Run migrations on the provided connection while logging timing."""
  context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
  migration_context = context.get_context()
  current_revision = migration_context.get_current_revision() or "base"
  _migration_logger.info("Starting migration run from %s", current_revision)
  started = perf_counter()

  with context.begin_transaction():
    context.run_migrations()

  final_heads = ", ".join(migration_context.get_current_heads()) or "none"
  _migration_logger.info("Completed migration run at %s in %.3fs", final_heads, perf_counter() - started)


async def run_async_migrations() -> None:
  """Run migrations with an async engine so settings match runtime drivers."""
  configuration = config.get_section(config.config_ini_section) or {}
  configuration["sqlalchemy.url"] = _require_url()
  connectable = async_engine_from_config(configuration, prefix="sqlalchemy.", poolclass=pool.NullPool)

  async with connectable.connect() as connection:
    await connection.run_sync(do_run_migrations)

  await connectable.dispose()


def run_migrations_online() -> None:
  asyncio.run(run_async_migrations())


if context.is_offline_mode():
  run_migrations_offline()
else:
  run_migrations_online()
