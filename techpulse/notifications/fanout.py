"""Broadcast one push payload to every stored subscription, pruning the ones that are gone."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass

from techpulse.notifications.contracts import InvalidPushSubscriptionError, NotificationProviderError, PushSender, PushSubscriptionEntry, SubscriptionStore

logger = logging.getLogger(__name__)


class DeliveryOutcome(enum.Enum):
  DELIVERED = "delivered"
  PRUNED = "pruned"
  FAILED = "failed"


@dataclass(frozen=True)
class DispatchReport:
  """Per-outcome counts for one fan-out run."""

  delivered: int = 0
  pruned: int = 0
  failed: int = 0

  @property
  def total(self) -> int:
    return self.delivered + self.pruned + self.failed


class PushFanOutDispatcher:
  """Deliver a payload to all subscribers and delete the subscriptions the push service reports gone.

  Delivery is best effort: individual failures are logged and counted but never
  raised. Only a failure to read the subscription set propagates.
  """

  def __init__(self, *, subscription_store: SubscriptionStore, push_sender: PushSender, max_concurrency: int = 8, attempt_timeout_seconds: float = 15.0) -> None:
    if max_concurrency <= 0:
      raise ValueError("max_concurrency must be positive")
    self._subscription_store = subscription_store
    self._push_sender = push_sender
    self._max_concurrency = max_concurrency
    self._attempt_timeout_seconds = attempt_timeout_seconds

  async def dispatch(self, payload: bytes) -> DispatchReport:
    """Attempt one delivery per stored subscription and return the outcome counts."""
    # Snapshot: rows added while the fan-out runs wait for the next submission.
    subscriptions = await self._subscription_store.list_all()
    if not subscriptions:
      logger.debug("Push fan-out skipped; no subscriptions stored")
      return DispatchReport()

    limiter = asyncio.Semaphore(self._max_concurrency)

    async def _bounded(subscription: PushSubscriptionEntry) -> DeliveryOutcome:
      async with limiter:
        return await self._deliver_one(subscription, payload)

    outcomes = await asyncio.gather(*(_bounded(subscription) for subscription in subscriptions))
    report = DispatchReport(delivered=outcomes.count(DeliveryOutcome.DELIVERED), pruned=outcomes.count(DeliveryOutcome.PRUNED), failed=outcomes.count(DeliveryOutcome.FAILED))
    logger.info("Push fan-out complete subscriptions=%d delivered=%d pruned=%d failed=%d", len(subscriptions), report.delivered, report.pruned, report.failed)
    return report

  async def _deliver_one(self, subscription: PushSubscriptionEntry, payload: bytes) -> DeliveryOutcome:
    try:
      # asyncio.to_thread lets wait_for give up on a hung endpoint without waiting for the worker thread.
      await asyncio.wait_for(asyncio.to_thread(self._push_sender.send, subscription, payload), timeout=self._attempt_timeout_seconds)
    except InvalidPushSubscriptionError as exc:
      logger.info("Push subscription gone subscription_id=%s reason=%s", subscription.id, exc)
      return await self._prune(subscription)
    except asyncio.TimeoutError:
      logger.warning("Push delivery timed out subscription_id=%s timeout=%.1fs", subscription.id, self._attempt_timeout_seconds)
      return DeliveryOutcome.FAILED
    except NotificationProviderError as exc:
      logger.error("Push notification delivery failed (provider error) subscription_id=%s: %s", subscription.id, exc)
      return DeliveryOutcome.FAILED
    except Exception as exc:  # noqa: BLE001
      logger.error("Push notification delivery failed subscription_id=%s: %s", subscription.id, exc, exc_info=True)
      return DeliveryOutcome.FAILED

    return DeliveryOutcome.DELIVERED

  async def _prune(self, subscription: PushSubscriptionEntry) -> DeliveryOutcome:
    try:
      await self._subscription_store.delete_by_id(subscription.id)
    except Exception as exc:  # noqa: BLE001
      # The row survives this run; the next fan-out sees the same gone status and retries the delete.
      logger.error("Failed deleting gone push subscription subscription_id=%s error=%s", subscription.id, exc, exc_info=True)
      return DeliveryOutcome.FAILED

    return DeliveryOutcome.PRUNED
