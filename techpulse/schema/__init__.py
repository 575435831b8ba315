"""Schema package exports."""

from .contacts import ContactSubmission
from .push_subscriptions import WebPushSubscription

__all__ = ["ContactSubmission", "WebPushSubscription"]
