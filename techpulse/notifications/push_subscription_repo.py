"""Repository helpers for Web Push subscription persistence."""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from techpulse.core.database import SessionFactory
from techpulse.notifications.contracts import NewPushSubscription, PushSubscriptionEntry
from techpulse.schema.push_subscriptions import WebPushSubscription


class PushSubscriptionRepository:
  """Persist and manage push subscriptions in Postgres."""

  def __init__(self, session_factory: SessionFactory | None) -> None:
    self._session_factory = session_factory

  def _require_factory(self) -> SessionFactory:
    if self._session_factory is None:
      raise RuntimeError("Database connection is not configured (TECHPULSE_PG_DSN is missing).")
    return self._session_factory

  async def insert(self, subscription: NewPushSubscription) -> uuid.UUID:
    """Insert a new subscription row; existing rows for the same endpoint are left alone."""
    async with self._require_factory()() as session:
      return await self._insert_with_session(session=session, subscription=subscription)

  async def _insert_with_session(self, *, session: AsyncSession, subscription: NewPushSubscription) -> uuid.UUID:
    record = WebPushSubscription(endpoint=subscription.endpoint, p256dh=subscription.p256dh, auth=subscription.auth, expiration_time=subscription.expiration_time)
    session.add(record)
    await session.commit()
    return record.id

  async def list_all(self) -> list[PushSubscriptionEntry]:
    """List every stored subscription."""
    async with self._require_factory()() as session:
      return await self._list_all_with_session(session=session)

  async def _list_all_with_session(self, *, session: AsyncSession) -> list[PushSubscriptionEntry]:
    stmt = select(WebPushSubscription).order_by(WebPushSubscription.created_at)
    result = await session.execute(stmt)
    rows = result.scalars().all()
    return [PushSubscriptionEntry(id=row.id, endpoint=row.endpoint, p256dh=row.p256dh, auth=row.auth, expiration_time=row.expiration_time) for row in rows]

  async def delete_by_id(self, subscription_id: uuid.UUID) -> None:
    """Delete one subscription row by identity. Deleting a missing row is a no-op."""
    async with self._require_factory()() as session:
      await self._delete_by_id_with_session(session=session, subscription_id=subscription_id)

  async def _delete_by_id_with_session(self, *, session: AsyncSession, subscription_id: uuid.UUID) -> None:
    # Delete by id, not endpoint, so a duplicate row for the same browser is pruned on its own failure.
    stmt = delete(WebPushSubscription).where(WebPushSubscription.id == subscription_id)
    await session.execute(stmt)
    await session.commit()
