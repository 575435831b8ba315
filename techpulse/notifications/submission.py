"""Contact submission orchestration: persist first, then notify on every channel."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from starlette.concurrency import run_in_threadpool

from techpulse.notifications.background import BackgroundTaskRegistry
from techpulse.notifications.contracts import ContactFields, ContactPersistenceError, ContactStore, DesktopNotifier, EmailNotification, EmailSender, NotificationProviderError
from techpulse.notifications.fanout import PushFanOutDispatcher
from techpulse.notifications.template_renderer import build_push_payload, render_contact_email, render_desktop_notification

logger = logging.getLogger(__name__)

SUBMISSION_ACK_MESSAGE = "Form submitted successfully!"


@dataclass(frozen=True)
class SubmissionResult:
  submission_id: uuid.UUID
  message: str = SUBMISSION_ACK_MESSAGE


class SubmissionHandler:
  """Store a contact submission and relay it by desktop toast, email and web push."""

  def __init__(
    self,
    *,
    contact_store: ContactStore,
    desktop_notifier: DesktopNotifier,
    email_sender: EmailSender,
    dispatcher: PushFanOutDispatcher,
    background: BackgroundTaskRegistry,
    email_to_address: str | None,
    email_escape_html: bool = True,
  ) -> None:
    self._contact_store = contact_store
    self._desktop_notifier = desktop_notifier
    self._email_sender = email_sender
    self._dispatcher = dispatcher
    self._background = background
    self._email_to_address = email_to_address
    self._email_escape_html = email_escape_html

  async def handle_submission(self, fields: ContactFields) -> SubmissionResult:
    """Persist the submission, then schedule the notifications without awaiting them.

    Raises ContactPersistenceError when the row could not be stored; in that
    case no notification is started.
    """
    try:
      submission_id = await self._contact_store.insert(fields)
    except Exception as exc:
      raise ContactPersistenceError("Failed to store contact submission") from exc

    logger.info("Contact submission stored submission_id=%s", submission_id)

    # Each channel gets its own task so one failing or hanging provider cannot hold up the others.
    self._background.spawn(self._notify_desktop(fields), name=f"desktop-notify:{submission_id}")
    self._background.spawn(self._send_email(fields), name=f"email-notify:{submission_id}")
    self._background.spawn(self._dispatch_push(fields), name=f"push-fanout:{submission_id}")

    return SubmissionResult(submission_id=submission_id)

  async def _notify_desktop(self, fields: ContactFields) -> None:
    try:
      await run_in_threadpool(self._desktop_notifier.notify, render_desktop_notification(fields))
    except Exception as exc:  # noqa: BLE001
      logger.error("Desktop notification failed: %s", exc)

  async def _send_email(self, fields: ContactFields) -> None:
    if not self._email_to_address:
      logger.error("Email notification skipped; no recipient configured (TECHPULSE_EMAIL_TO / TECHPULSE_EMAIL_USER)")
      return

    try:
      subject, text_body, html_body = render_contact_email(fields, escape_html=self._email_escape_html)
      notification = EmailNotification(to_address=self._email_to_address, to_name=None, subject=subject, text=text_body, html=html_body)
      send_result = await run_in_threadpool(self._email_sender.send, notification)
    except NotificationProviderError as exc:
      # Provider-level errors are often expected (bad credentials, quota); skip the traceback.
      logger.error("Email notification delivery failed (provider error): %s", exc)
    except Exception as exc:  # noqa: BLE001
      logger.error("Email notification delivery failed: %s", exc, exc_info=True)
    else:
      logger.info("Email notification sent provider=%s message_id=%s", send_result.get("provider"), send_result.get("message_id"))

  async def _dispatch_push(self, fields: ContactFields) -> None:
    try:
      await self._dispatcher.dispatch(build_push_payload(fields))
    except Exception as exc:  # noqa: BLE001
      logger.error("Push fan-out aborted; subscription lookup failed: %s", exc, exc_info=True)
