"""SQLAlchemy model for browser Web Push subscriptions."""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import BigInteger, DateTime, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from techpulse.core.database import Base


class WebPushSubscription(Base):
  """Persist a single browser push subscription endpoint.

  Endpoints are not unique: a browser that subscribes twice is stored twice.
  """

  __tablename__ = "push_subscriptions"

  id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
  endpoint: Mapped[str] = mapped_column(Text, nullable=False)
  p256dh: Mapped[str] = mapped_column(Text, nullable=False)
  auth: Mapped[str] = mapped_column(Text, nullable=False)
  expiration_time: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
