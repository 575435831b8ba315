"""Repository helpers for contact submission persistence."""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from techpulse.core.database import SessionFactory
from techpulse.notifications.contracts import ContactFields
from techpulse.schema.contacts import ContactSubmission


class ContactSubmissionRepository:
  """Persist contact submissions to Postgres using SQLAlchemy."""

  def __init__(self, session_factory: SessionFactory | None) -> None:
    self._session_factory = session_factory

  async def insert(self, fields: ContactFields) -> uuid.UUID:
    """Insert a new submission row and return its id."""
    if self._session_factory is None:
      raise RuntimeError("Database connection is not configured (TECHPULSE_PG_DSN is missing).")

    async with self._session_factory() as session:
      return await self._insert_with_session(session=session, fields=fields)

  async def _insert_with_session(self, *, session: AsyncSession, fields: ContactFields) -> uuid.UUID:
    record = ContactSubmission(name=fields.name, email=fields.email, service=fields.service, budget=fields.budget, deadline=fields.deadline, message=fields.message)
    session.add(record)
    await session.commit()
    return record.id
