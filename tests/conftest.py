"""Test configuration and in-memory collaborators shared across the suite."""

from __future__ import annotations

import os
import sys
import uuid
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

# Keep the suite independent of a developer's shell or .env file.
os.environ["TECHPULSE_RATE_LIMIT_MAX_REQUESTS"] = "0"
os.environ["TECHPULSE_DESKTOP_NOTIFICATIONS_ENABLED"] = "false"
for _name in ("TECHPULSE_PUSH_VAPID_PUBLIC_KEY", "TECHPULSE_PUSH_VAPID_PRIVATE_KEY", "PUBLIC_VAPID_KEY", "PRIVATE_VAPID_KEY", "TECHPULSE_STATIC_DIR", "TECHPULSE_ALLOWED_ORIGINS"):
  os.environ.pop(_name, None)

import pytest  # noqa: E402

from techpulse.notifications.contracts import ContactFields, InvalidPushSubscriptionError, NewPushSubscription, PushDeliveryError, PushSubscriptionEntry  # noqa: E402

P256DH = "BEl6f5Y8X5Y_u7d8mV_AbpZfXfTLT3s1O3L4wM1x8QY2_5qWQ-jxJq7uKjv8mQ4I"
AUTH = "gq8Yh5xA9l2mQ6pR"


class InMemorySubscriptionStore:
  """Dict-backed subscription store that records deletes."""

  def __init__(self, entries: list[PushSubscriptionEntry] | None = None) -> None:
    self.rows: dict[uuid.UUID, PushSubscriptionEntry] = {entry.id: entry for entry in entries or []}
    self.deleted: list[uuid.UUID] = []
    self.fail_list = False
    self.fail_delete = False
    self.fail_insert = False

  async def insert(self, subscription: NewPushSubscription) -> uuid.UUID:
    if self.fail_insert:
      raise RuntimeError("store unavailable")
    entry = PushSubscriptionEntry(id=uuid.uuid4(), endpoint=subscription.endpoint, p256dh=subscription.p256dh, auth=subscription.auth, expiration_time=subscription.expiration_time)
    self.rows[entry.id] = entry
    return entry.id

  async def list_all(self) -> list[PushSubscriptionEntry]:
    if self.fail_list:
      raise RuntimeError("db unavailable")
    return list(self.rows.values())

  async def delete_by_id(self, subscription_id: uuid.UUID) -> None:
    if self.fail_delete:
      raise RuntimeError("delete failed")
    self.deleted.append(subscription_id)
    self.rows.pop(subscription_id, None)


class InMemoryContactStore:
  def __init__(self) -> None:
    self.rows: dict[uuid.UUID, ContactFields] = {}
    self.fail_insert = False

  async def insert(self, fields: ContactFields) -> uuid.UUID:
    if self.fail_insert:
      raise RuntimeError("insert failed")
    submission_id = uuid.uuid4()
    self.rows[submission_id] = fields
    return submission_id


class ScriptedPushSender:
  """Push client whose result is decided per endpoint: 'ok', 'gone' or 'error'."""

  def __init__(self, behaviour: dict[str, str] | None = None, default: str = "ok") -> None:
    self.behaviour = behaviour or {}
    self.default = default
    self.calls: list[tuple[str, bytes]] = []

  def send(self, subscription: PushSubscriptionEntry, payload: bytes) -> None:
    self.calls.append((subscription.endpoint, payload))
    outcome = self.behaviour.get(subscription.endpoint, self.default)
    if outcome == "gone":
      raise InvalidPushSubscriptionError("Push subscription is gone (status=410)")
    if outcome == "error":
      raise PushDeliveryError("Push delivery failed (status=400)")


def make_subscription(endpoint: str) -> PushSubscriptionEntry:
  return PushSubscriptionEntry(id=uuid.uuid4(), endpoint=endpoint, p256dh=P256DH, auth=AUTH)


@pytest.fixture
def ada_fields() -> ContactFields:
  return ContactFields(name="Ada", email="ada@example.com", service="web", budget="$5k", deadline="2 weeks", message="Hello")


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"
