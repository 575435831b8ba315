from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from techpulse.config import DatabaseSettings

SessionFactory = async_sessionmaker[AsyncSession]


class Base(DeclarativeBase):
  pass


def database_url(settings: DatabaseSettings) -> str | None:
  """Build the SQLAlchemy database URL, forcing the asyncpg driver for plain Postgres DSNs."""
  url = settings.pg_dsn
  if url and url.startswith("postgres://"):
    url = url.replace("postgres://", "postgresql+asyncpg://", 1)
  elif url and url.startswith("postgresql://"):
    url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

  return url


def build_engine(settings: DatabaseSettings) -> AsyncEngine | None:
  """Create the process engine, or None when no DSN is configured."""
  url = database_url(settings)
  if not url:
    return None

  connect_args = {"timeout": settings.pg_connect_timeout} if "+asyncpg" in url else {}
  return create_async_engine(url, echo=settings.debug, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine: AsyncEngine | None) -> SessionFactory | None:
  if engine is None:
    return None
  return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
