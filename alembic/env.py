import asyncio
import logging
from logging.config import fileConfig
from time import perf_counter

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

import guidebook.schema  # noqa: F401
from alembic import context
from guidebook.core.database import Base, database_url

config = context.config

if config.config_file_name is not None:
  fileConfig(config.config_file_name)

target_metadata = Base.metadata
logger = logging.getLogger("alembic.runtime.migration")


class RevisionTimer:
  """Log how long each applied revision took."""

  def __init__(self) -> None:
    self._started = perf_counter()

  def reset(self) -> None:
    self._started = perf_counter()

  def __call__(self, *, ctx: object, step: object, heads: set[str], run_args: dict[str, object]) -> None:
    revision = getattr(step, "up_revision_id", None) or getattr(step, "down_revision_id", None) or "unknown"
    logger.info("Applied revision %s in %.3fs", revision, perf_counter() - self._started)
    self.reset()


def _database_url() -> str:
  url = database_url()
  if not url:
    raise RuntimeError("GUIDEBOOK_PG_DSN is required to run migrations.")
  return url


def run_migrations_offline() -> None:
  context.configure(url=_database_url(), target_metadata=target_metadata, literal_binds=True, dialect_opts={"paramstyle": "named"}, compare_type=True)
  with context.begin_transaction():
    context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
  timer = RevisionTimer()
  context.configure(connection=connection, target_metadata=target_metadata, compare_type=True, on_version_apply=timer)

  migration_context = context.get_context()
  heads = migration_context.script.get_heads() if migration_context.script else []
  logger.info("Migrating %s -> %s", migration_context.get_current_revision() or "base", ", ".join(heads) or "none")
  timer.reset()
  with context.begin_transaction():
    context.run_migrations()


async def run_async_migrations() -> None:
  section = config.get_section(config.config_ini_section) or {}
  section["sqlalchemy.url"] = _database_url()
  engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
  try:
    async with engine.connect() as connection:
      await connection.run_sync(do_run_migrations)
  finally:
    await engine.dispose()


if context.is_offline_mode():
  run_migrations_offline()
else:
  asyncio.run(run_async_migrations())
