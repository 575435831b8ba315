"""Contracts for contact storage and notification delivery channels."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ContactFields:
  """The six free-text fields of a contact form submission."""

  name: str
  email: str
  service: str
  budget: str
  deadline: str
  message: str


@dataclass(frozen=True)
class PushSubscriptionEntry:
  """A stored browser push subscription and its store identity."""

  id: uuid.UUID
  endpoint: str
  p256dh: str
  auth: str
  expiration_time: int | None = None


@dataclass(frozen=True)
class NewPushSubscription:
  """Browser-supplied subscription data before it is stored."""

  endpoint: str
  p256dh: str
  auth: str
  expiration_time: int | None = None


@dataclass(frozen=True)
class EmailNotification:
  """Represents an email notification payload."""

  to_address: str
  to_name: str | None
  subject: str
  text: str
  html: str


@dataclass(frozen=True)
class DesktopNotification:
  """Title and message for a local desktop toast."""

  title: str
  message: str


class NotificationError(Exception):
  """Base class for all notification delivery failures."""


class NotificationProviderError(NotificationError):
  """Exception raised when a specific provider (SMTP, MailerSend, push service) returns a delivery error."""


class InvalidPushSubscriptionError(NotificationProviderError):
  """Exception raised when a push subscription endpoint is expired or gone."""


class TransientPushProviderError(NotificationProviderError):
  """Exception raised when transient push provider failures exhaust retries."""


class PushDeliveryError(NotificationProviderError):
  """Exception raised for non-retriable push failures that do not mean the subscription is gone."""


class PersistenceError(Exception):
  """Base class for store write failures that must fail the request."""

  public_message = "Server error"


class ContactPersistenceError(PersistenceError):
  """Raised when a contact submission could not be stored."""


class SubscriptionPersistenceError(PersistenceError):
  """Raised when a push subscription could not be stored."""

  public_message = "Failed to save subscription"


class EmailSender(Protocol):
  """Delivery contract for sending email notifications."""

  def send(self, notification: EmailNotification) -> dict[str, str | None]:
    """Send an email notification synchronously and return provider identifiers."""


class PushSender(Protocol):
  """Delivery contract for a single push attempt."""

  def send(self, subscription: PushSubscriptionEntry, payload: bytes) -> None:
    """Deliver an already-serialized payload to one subscription synchronously."""


class DesktopNotifier(Protocol):
  """Delivery contract for local desktop notifications."""

  def notify(self, notification: DesktopNotification) -> None:
    """Show a desktop notification synchronously."""


class ContactStore(Protocol):
  async def insert(self, fields: ContactFields) -> uuid.UUID: ...


class SubscriptionStore(Protocol):
  async def insert(self, subscription: NewPushSubscription) -> uuid.UUID: ...

  async def list_all(self) -> list[PushSubscriptionEntry]: ...

  async def delete_by_id(self, subscription_id: uuid.UUID) -> None: ...
