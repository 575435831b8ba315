"""Factory helpers that wire the notification stack from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from techpulse.config import Settings, get_database_settings
from techpulse.core.database import build_engine, build_session_factory
from techpulse.notifications.background import BackgroundTaskRegistry
from techpulse.notifications.contact_repo import ContactSubmissionRepository
from techpulse.notifications.contracts import DesktopNotifier, EmailSender, PushSender
from techpulse.notifications.desktop_notifier import NullDesktopNotifier, PlyerDesktopNotifier
from techpulse.notifications.email_sender import MailerSendConfig, MailerSendEmailSender, NullEmailSender, SmtpConfig, SmtpEmailSender
from techpulse.notifications.fanout import PushFanOutDispatcher
from techpulse.notifications.push_sender import NullPushSender, VapidConfig, WebPushSender
from techpulse.notifications.push_subscription_repo import PushSubscriptionRepository
from techpulse.notifications.submission import SubmissionHandler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppRuntime:
  """Process-wide collaborators built once at startup and injected into request handlers."""

  settings: Settings
  engine: AsyncEngine | None
  contact_repo: ContactSubmissionRepository
  subscription_repo: PushSubscriptionRepository
  dispatcher: PushFanOutDispatcher
  background: BackgroundTaskRegistry
  submission_handler: SubmissionHandler


def build_email_sender(settings: Settings) -> EmailSender:
  """Pick the mail transport; credentials are checked at send time, not here."""
  if not settings.email_notifications_enabled:
    return NullEmailSender()

  if settings.email_provider == "mailersend":
    return MailerSendEmailSender(
      config=MailerSendConfig(api_key=settings.mailersend_api_key, from_address=settings.email_user, from_name=settings.email_from_name, timeout_seconds=settings.email_timeout_seconds, base_url=settings.mailersend_base_url)
    )

  return SmtpEmailSender(
    config=SmtpConfig(host=settings.smtp_host, port=settings.smtp_port, username=settings.email_user, password=settings.email_password, from_name=settings.email_from_name, timeout_seconds=settings.email_timeout_seconds)
  )


def build_push_sender(settings: Settings) -> PushSender:
  """Sign pushes with VAPID when both keys are present; otherwise push is disabled."""
  if not settings.push_enabled:
    logger.warning("VAPID keys are not configured; web push notifications are disabled.")
    return NullPushSender()

  if not settings.push_vapid_sub:
    logger.warning("No VAPID subject configured (TECHPULSE_PUSH_VAPID_SUB / TECHPULSE_EMAIL_USER); push services may reject unsigned requests.")

  vapid_config = VapidConfig(public_key=settings.push_vapid_public_key or "", private_key=settings.push_vapid_private_key or "", sub=settings.push_vapid_sub)
  return WebPushSender(vapid_config=vapid_config, timeout_seconds=settings.push_timeout_seconds)


def build_desktop_notifier(settings: Settings) -> DesktopNotifier:
  if not settings.desktop_notifications_enabled:
    return NullDesktopNotifier()
  return PlyerDesktopNotifier(app_name=settings.email_from_name)


def build_runtime(settings: Settings) -> AppRuntime:
  """Construct every collaborator the HTTP layer needs."""
  engine = build_engine(get_database_settings())
  if engine is None:
    logger.warning("TECHPULSE_PG_DSN is not configured; submissions and subscriptions cannot be stored.")

  session_factory = build_session_factory(engine)
  contact_repo = ContactSubmissionRepository(session_factory)
  subscription_repo = PushSubscriptionRepository(session_factory)
  push_sender = build_push_sender(settings)

  # A single attempt may include the sender's own retries, so leave room for them.
  attempt_timeout_seconds = float(settings.push_timeout_seconds * (len(WebPushSender.backoff_seconds) + 1) + sum(WebPushSender.backoff_seconds))
  dispatcher = PushFanOutDispatcher(subscription_store=subscription_repo, push_sender=push_sender, max_concurrency=settings.push_max_concurrency, attempt_timeout_seconds=attempt_timeout_seconds)
  background = BackgroundTaskRegistry()

  submission_handler = SubmissionHandler(
    contact_store=contact_repo,
    desktop_notifier=build_desktop_notifier(settings),
    email_sender=build_email_sender(settings),
    dispatcher=dispatcher,
    background=background,
    email_to_address=settings.email_to_address,
    email_escape_html=settings.email_escape_html,
  )

  return AppRuntime(settings=settings, engine=engine, contact_repo=contact_repo, subscription_repo=subscription_repo, dispatcher=dispatcher, background=background, submission_handler=submission_handler)
