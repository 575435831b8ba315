"""Routes for Web Push key discovery and subscription."""

from __future__ import annotations

import re
import urllib.parse

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from techpulse.api.deps import get_app_settings, get_subscription_store
from techpulse.api.models import MessageResponse
from techpulse.config import Settings
from techpulse.notifications.contracts import NewPushSubscription, SubscriptionPersistenceError, SubscriptionStore

_BASE64_RE = re.compile(r"^[A-Za-z0-9_-]+={0,2}$")

router = APIRouter()


class PushSubscriptionKeys(BaseModel):
  """Browser-provided key material for Web Push encryption."""

  p256dh: str = Field(min_length=1, max_length=512)
  auth: str = Field(min_length=1, max_length=256)

  @field_validator("p256dh", "auth")
  @classmethod
  def validate_base64url(cls, value: str) -> str:
    """Browsers emit both keys base64url encoded."""
    normalized = value.strip()
    if not _BASE64_RE.fullmatch(normalized):
      raise PydanticCustomError("push_key_format", "push keys must be base64url encoded.")

    return normalized


class PushSubscribeRequest(BaseModel):
  """Standard browser `PushSubscription.toJSON()` payload."""

  endpoint: str = Field(min_length=1, max_length=2048)
  expiration_time: int | None = Field(default=None, alias="expirationTime")
  keys: PushSubscriptionKeys
  model_config = ConfigDict(extra="ignore", populate_by_name=True)

  @field_validator("endpoint")
  @classmethod
  def validate_endpoint(cls, value: str) -> str:
    """Push services are only reachable over HTTPS."""
    normalized = value.strip()
    parsed = urllib.parse.urlparse(normalized)

    if parsed.scheme.lower() != "https" or not parsed.hostname:
      raise PydanticCustomError("push_endpoint_https", "endpoint must be an https URL.")

    return normalized


@router.get("/vapidPublicKey", response_class=PlainTextResponse)
async def get_vapid_public_key(settings: Settings = Depends(get_app_settings)) -> PlainTextResponse:  # noqa: B008
  """Expose the VAPID public key the browser needs for `pushManager.subscribe`."""
  if not settings.push_vapid_public_key:
    return PlainTextResponse("VAPID public key is not configured", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

  return PlainTextResponse(settings.push_vapid_public_key)


@router.post("/subscribe", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
async def subscribe_to_push(payload: PushSubscribeRequest, store: SubscriptionStore = Depends(get_subscription_store)) -> MessageResponse:  # noqa: B008
  """Store a browser push subscription. Repeated subscriptions are stored again, not merged."""
  try:
    await store.insert(NewPushSubscription(endpoint=payload.endpoint, p256dh=payload.keys.p256dh, auth=payload.keys.auth, expiration_time=payload.expiration_time))
  except Exception as exc:  # noqa: BLE001
    raise SubscriptionPersistenceError("Failed to store push subscription") from exc

  return MessageResponse(message="Subscribed successfully!")
