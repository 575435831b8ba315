"""Email delivery implementations.

Two transports are supported: authenticated SMTP (the default, suited to a
personal mailbox such as Gmail with an app password) and the MailerSend HTTP
API. Missing credentials are reported when a message is sent, never at startup.
"""

from __future__ import annotations

import json
import logging
import smtplib
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from techpulse.notifications.contracts import EmailNotification, EmailSender, NotificationProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpConfig:
  """SMTP account and server settings."""

  host: str
  port: int
  username: str | None
  password: str | None
  from_name: str | None
  timeout_seconds: int


@dataclass(frozen=True)
class MailerSendConfig:
  """MailerSend configuration needed to send emails."""

  api_key: str | None
  from_address: str | None
  from_name: str | None
  timeout_seconds: int
  base_url: str = "https://api.mailersend.com/v1"


class SmtpEmailSender(EmailSender):
  """SMTP sender that logs in with the mailbox credentials and sends a multipart message."""

  def __init__(self, *, config: SmtpConfig) -> None:
    self._config = config

  def _build_message(self, notification: EmailNotification) -> EmailMessage:
    message = EmailMessage()
    message["From"] = formataddr((self._config.from_name or "", self._config.username or ""))
    message["To"] = formataddr((notification.to_name or "", notification.to_address))
    message["Subject"] = notification.subject
    message["Message-ID"] = make_msgid()
    message.set_content(notification.text)
    message.add_alternative(notification.html, subtype="html")
    return message

  def send(self, notification: EmailNotification) -> dict[str, str | None]:
    """Send an email over SMTP and return the generated message id."""
    if not self._config.username or not self._config.password:
      raise NotificationProviderError("SMTP credentials are not configured (TECHPULSE_EMAIL_USER / TECHPULSE_EMAIL_PASSWORD).")

    message = self._build_message(notification)

    try:
      # Port 465 speaks TLS from the first byte; anything else upgrades with STARTTLS.
      if self._config.port == 465:
        client: smtplib.SMTP = smtplib.SMTP_SSL(self._config.host, self._config.port, timeout=self._config.timeout_seconds, context=ssl.create_default_context())
      else:
        client = smtplib.SMTP(self._config.host, self._config.port, timeout=self._config.timeout_seconds)

      with client:
        if not isinstance(client, smtplib.SMTP_SSL):
          client.starttls(context=ssl.create_default_context())
        client.login(self._config.username, self._config.password)
        client.send_message(message)

    except smtplib.SMTPException as exc:
      logger.error("SMTP email request failed host=%s error=%s", self._config.host, exc)
      raise NotificationProviderError(f"SMTP delivery failed: {exc}") from exc

    except OSError as exc:
      logger.error("SMTP connection failed host=%s error=%s", self._config.host, exc)
      raise NotificationProviderError(f"SMTP connection failed: {exc}") from exc

    return {"provider": "smtp", "message_id": message["Message-ID"], "request_id": None}


class MailerSendEmailSender(EmailSender):
  """MailerSend-backed email sender using the provider API."""

  def __init__(self, *, config: MailerSendConfig) -> None:
    self._config = config

  def send(self, notification: EmailNotification) -> dict[str, str | None]:
    """Send an email using the MailerSend API and return provider identifiers."""
    if not self._config.api_key or not self._config.from_address:
      raise NotificationProviderError("MailerSend is not configured (TECHPULSE_MAILERSEND_API_KEY / TECHPULSE_EMAIL_USER).")

    from_payload: dict[str, str] = {"email": self._config.from_address}
    if self._config.from_name:
      from_payload["name"] = self._config.from_name

    to_payload: dict[str, str] = {"email": notification.to_address}
    if notification.to_name:
      to_payload["name"] = notification.to_name

    payload: dict[str, object] = {"from": from_payload, "to": [to_payload], "subject": notification.subject, "text": notification.text, "html": notification.html}

    request = urllib.request.Request(
      url=f"{self._config.base_url}/email", data=json.dumps(payload).encode("utf-8"), method="POST", headers={"Authorization": f"Bearer {self._config.api_key}", "Content-Type": "application/json", "Accept": "application/json"}
    )

    try:
      with urllib.request.urlopen(request, timeout=self._config.timeout_seconds) as response:
        headers = dict(response.headers.items()) if response else {}
        message_id = headers.get("X-Message-Id") or headers.get("X-Message-ID")
        return {"provider": "mailersend", "message_id": message_id or None, "request_id": headers.get("X-Request-Id") or headers.get("X-Request-ID")}

    except urllib.error.HTTPError as exc:
      raw_error = exc.read().decode("utf-8") if exc.fp else ""
      logger.error("MailerSend email request failed status=%s body=%s", exc.code, raw_error)
      raise NotificationProviderError(str(exc)) from exc

    except urllib.error.URLError as exc:
      logger.error("MailerSend email request failed: %s", exc)
      raise NotificationProviderError(str(exc)) from exc


class NullEmailSender(EmailSender):
  """No-op email sender used when notifications are disabled."""

  def send(self, notification: EmailNotification) -> dict[str, str | None]:
    """Drop the notification while recording a debug log."""
    logger.debug("Email notifications disabled; dropping email to=%s subject=%s", notification.to_address, notification.subject)
    return {"provider": None, "message_id": None, "request_id": None}
