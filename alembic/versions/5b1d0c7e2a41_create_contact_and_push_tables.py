"""Create contact submission and push subscription tables.

Revision ID: 5b1d0c7e2a41
Revises:
Create Date: 2026-10-19 09:12:41.118204
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "5b1d0c7e2a41"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "contact_submissions",
    sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
    sa.Column("name", sa.Text(), nullable=True),
    sa.Column("email", sa.Text(), nullable=True),
    sa.Column("service", sa.Text(), nullable=True),
    sa.Column("budget", sa.Text(), nullable=True),
    sa.Column("deadline", sa.Text(), nullable=True),
    sa.Column("message", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  # No unique index on endpoint: the same browser may be stored more than once.
  op.create_table(
    "push_subscriptions",
    sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
    sa.Column("endpoint", sa.Text(), nullable=False),
    sa.Column("p256dh", sa.Text(), nullable=False),
    sa.Column("auth", sa.Text(), nullable=False),
    sa.Column("expiration_time", sa.BigInteger(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_table("push_subscriptions")
  op.drop_table("contact_submissions")
