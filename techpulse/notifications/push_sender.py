"""Push notification delivery implementations."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from http import HTTPStatus

from pywebpush import WebPushException, webpush

from techpulse.notifications.contracts import InvalidPushSubscriptionError, PushDeliveryError, PushSender, PushSubscriptionEntry, TransientPushProviderError

logger = logging.getLogger(__name__)

_GONE_STATUSES = {HTTPStatus.GONE, HTTPStatus.NOT_FOUND}


@dataclass(frozen=True)
class VapidConfig:
  """Configuration required to sign Web Push requests."""

  public_key: str
  private_key: str
  sub: str | None


class WebPushSender(PushSender):
  """`pywebpush` backed sender with retry and gone-endpoint classification."""

  backoff_seconds: tuple[float, ...] = (0.5, 1.0)

  def __init__(self, *, vapid_config: VapidConfig, timeout_seconds: float = 10.0) -> None:
    self._vapid_config = vapid_config
    self._timeout_seconds = timeout_seconds

  def send(self, subscription: PushSubscriptionEntry, payload: bytes) -> None:
    """Send one Web Push payload with bounded retries for transient failures."""
    subscription_info = {"endpoint": subscription.endpoint, "keys": {"p256dh": subscription.p256dh, "auth": subscription.auth}}
    vapid_claims = {"sub": self._vapid_config.sub} if self._vapid_config.sub else {}

    for attempt in range(len(self.backoff_seconds) + 1):
      try:
        webpush(subscription_info=subscription_info, data=payload, vapid_private_key=self._vapid_config.private_key, vapid_claims=vapid_claims, timeout=self._timeout_seconds)
        return
      except WebPushException as exc:
        status_code = _extract_status_code(exc)

        if status_code in _GONE_STATUSES:
          raise InvalidPushSubscriptionError(f"Push subscription is gone (status={int(status_code)})") from exc

        if status_code is not None and (500 <= status_code < 600 or status_code == HTTPStatus.TOO_MANY_REQUESTS):
          if attempt < len(self.backoff_seconds):
            # Back off briefly to avoid amplifying transient provider incidents.
            time.sleep(self.backoff_seconds[attempt])
            continue

          raise TransientPushProviderError(f"Transient push provider failure after retries (status={status_code})") from exc

        raise PushDeliveryError(f"Push delivery failed (status={status_code if status_code else 'unknown'})") from exc


class NullPushSender(PushSender):
  """No-op push sender used when VAPID keys are not configured."""

  def send(self, subscription: PushSubscriptionEntry, payload: bytes) -> None:
    """Drop the notification while recording a debug log."""
    logger.debug("Push notifications disabled; dropping push subscription_id=%s", subscription.id)


def _extract_status_code(exc: WebPushException) -> int | None:
  """Extract an HTTP status code from a pywebpush exception when available."""
  response = getattr(exc, "response", None)
  if response is None:
    return None

  status = getattr(response, "status_code", None)
  if isinstance(status, int):
    return status

  return None
