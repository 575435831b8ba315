"""SQLAlchemy model for contact form submissions."""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import DateTime, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from techpulse.core.database import Base


class ContactSubmission(Base):
  """A single submitted contact form. Rows are written once and never updated."""

  __tablename__ = "contact_submissions"

  id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
  name: Mapped[str | None] = mapped_column(Text, nullable=True)
  email: Mapped[str | None] = mapped_column(Text, nullable=True)
  service: Mapped[str | None] = mapped_column(Text, nullable=True)
  budget: Mapped[str | None] = mapped_column(Text, nullable=True)
  deadline: Mapped[str | None] = mapped_column(Text, nullable=True)
  message: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
