"""Response models shared by the API routes."""

from __future__ import annotations

from pydantic import BaseModel


class MessageResponse(BaseModel):
  """The `{message}` acknowledgement returned by the POST endpoints."""

  message: str
