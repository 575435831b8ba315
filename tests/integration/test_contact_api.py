from __future__ import annotations

import pytest
from conftest import InMemoryContactStore, InMemorySubscriptionStore, ScriptedPushSender
from httpx import ASGITransport, AsyncClient

from techpulse.api.deps import get_submission_handler
from techpulse.main import app
from techpulse.notifications.background import BackgroundTaskRegistry
from techpulse.notifications.contracts import ContactFields
from techpulse.notifications.fanout import PushFanOutDispatcher
from techpulse.notifications.submission import SubmissionHandler

_ADA = {"name": "Ada", "email": "ada@example.com", "service": "web", "budget": "$5k", "deadline": "2 weeks", "message": "Hello"}


class _Recorder:
  def __init__(self) -> None:
    self.items = []

  def send(self, notification):
    self.items.append(notification)
    return {"provider": "test", "message_id": None, "request_id": None}

  def notify(self, notification):
    self.items.append(notification)


class _Harness:
  def __init__(self) -> None:
    self.contacts = InMemoryContactStore()
    self.subscriptions = InMemorySubscriptionStore()
    self.push_sender = ScriptedPushSender()
    self.email = _Recorder()
    self.desktop = _Recorder()
    self.background = BackgroundTaskRegistry()
    dispatcher = PushFanOutDispatcher(subscription_store=self.subscriptions, push_sender=self.push_sender)
    self.handler = SubmissionHandler(
      contact_store=self.contacts, desktop_notifier=self.desktop, email_sender=self.email, dispatcher=dispatcher, background=self.background, email_to_address="owner@example.com"
    )


@pytest.fixture
def harness():
  harness = _Harness()
  app.dependency_overrides[get_submission_handler] = lambda: harness.handler
  yield harness
  app.dependency_overrides.clear()


def _client() -> AsyncClient:
  return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.anyio
async def test_submission_is_stored_acknowledged_and_relayed(harness):
  async with _client() as client:
    response = await client.post("/api/contact", json=_ADA)

  await harness.background.drain(2.0)

  assert response.status_code == 200
  assert response.json() == {"message": "Form submitted successfully!"}
  assert list(harness.contacts.rows.values()) == [ContactFields(**_ADA)]
  assert harness.push_sender.calls == []
  [email] = harness.email.items
  assert "Ada" in email.text
  assert "ada@example.com" in email.text
  [toast] = harness.desktop.items
  assert toast.message == "From: Ada (ada@example.com)"


@pytest.mark.anyio
async def test_html_form_post_is_accepted(harness):
  async with _client() as client:
    response = await client.post("/api/contact", data=_ADA)

  await harness.background.drain(2.0)

  assert response.status_code == 200
  assert response.json() == {"message": "Form submitted successfully!"}
  assert list(harness.contacts.rows.values()) == [ContactFields(**_ADA)]
  assert len(harness.email.items) == 1


@pytest.mark.anyio
async def test_form_post_missing_email_is_rejected(harness):
  async with _client() as client:
    response = await client.post("/api/contact", data={"name": "Ada"})

  assert response.status_code == 422
  assert response.json()["errors"][0]["loc"] == ["body", "email"]
  assert harness.contacts.rows == {}


@pytest.mark.anyio
async def test_field_values_are_stored_as_submitted(harness):
  body = {**_ADA, "name": "  Ada Lovelace ", "message": "  line one\nline two  "}

  async with _client() as client:
    response = await client.post("/api/contact", json=body)

  await harness.background.drain(2.0)

  assert response.status_code == 200
  [stored] = harness.contacts.rows.values()
  assert stored.name == "  Ada Lovelace "
  assert stored.message == "  line one\nline two  "


@pytest.mark.anyio
async def test_malformed_json_is_rejected(harness):
  async with _client() as client:
    response = await client.post("/api/contact", content=b"{not json", headers={"content-type": "application/json"})

  assert response.status_code == 422
  assert response.json()["message"] == "Invalid request"
  assert harness.contacts.rows == {}


@pytest.mark.anyio
async def test_optional_fields_default_to_empty(harness):
  async with _client() as client:
    response = await client.post("/api/contact", json={"name": "Ada", "email": "ada@example.com"})

  await harness.background.drain(2.0)

  assert response.status_code == 200
  [stored] = harness.contacts.rows.values()
  assert stored == ContactFields(name="Ada", email="ada@example.com", service="", budget="", deadline="", message="")


@pytest.mark.anyio
async def test_storage_failure_returns_generic_error_without_notifying(harness):
  harness.contacts.fail_insert = True

  async with _client() as client:
    response = await client.post("/api/contact", json=_ADA)

  await harness.background.drain(2.0)

  assert response.status_code == 500
  assert response.json()["message"] == "Server error"
  assert harness.email.items == []
  assert harness.desktop.items == []


@pytest.mark.anyio
@pytest.mark.parametrize("body", [{"name": "Ada"}, {"name": "Ada", "email": "not-an-email"}, {"name": "   ", "email": "ada@example.com"}])
async def test_invalid_submission_is_rejected(harness, body):
  async with _client() as client:
    response = await client.post("/api/contact", json=body)

  assert response.status_code == 422
  assert response.json()["message"] == "Invalid request"
  assert harness.contacts.rows == {}


@pytest.mark.anyio
async def test_response_carries_request_id_and_security_headers(harness):
  async with _client() as client:
    response = await client.post("/api/contact", json=_ADA)

  await harness.background.drain(2.0)

  assert response.headers["x-request-id"]
  assert response.headers["x-content-type-options"] == "nosniff"
