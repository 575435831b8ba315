"""Desktop notification implementations."""

from __future__ import annotations

import logging

from plyer import notification as plyer_notification

from techpulse.notifications.contracts import DesktopNotification, DesktopNotifier

logger = logging.getLogger(__name__)


class PlyerDesktopNotifier(DesktopNotifier):
  """Show a toast on the machine running the service through the platform's native notifier."""

  def __init__(self, *, app_name: str, timeout_seconds: int = 10) -> None:
    self._app_name = app_name
    self._timeout_seconds = timeout_seconds

  def notify(self, notification: DesktopNotification) -> None:
    # plyer raises NotImplementedError on hosts without a notification backend (e.g. headless servers).
    plyer_notification.notify(title=notification.title, message=notification.message, app_name=self._app_name, timeout=self._timeout_seconds)


class NullDesktopNotifier(DesktopNotifier):
  """No-op notifier used when desktop notifications are disabled."""

  def notify(self, notification: DesktopNotification) -> None:
    logger.debug("Desktop notifications disabled; dropping title=%s", notification.title)
