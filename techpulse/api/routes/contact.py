"""Route for contact form submissions."""

from __future__ import annotations

import json
import re
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from techpulse.api.deps import get_submission_handler
from techpulse.api.models import MessageResponse
from techpulse.notifications.contracts import ContactFields
from techpulse.notifications.submission import SubmissionHandler

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

router = APIRouter()


class ContactRequest(BaseModel):
  """Contact form body. Only name and email are required; values are stored as submitted."""

  name: str = Field(min_length=1, max_length=200)
  email: str = Field(min_length=3, max_length=200)
  service: str = Field(default="", max_length=200)
  budget: str = Field(default="", max_length=200)
  deadline: str = Field(default="", max_length=200)
  message: str = Field(default="", max_length=5000)
  model_config = ConfigDict(extra="ignore")

  @field_validator("name")
  @classmethod
  def validate_name(cls, value: str) -> str:
    if not value.strip():
      raise PydanticCustomError("contact_name_blank", "name must not be blank.")
    return value

  @field_validator("email")
  @classmethod
  def validate_email(cls, value: str) -> str:
    if not _EMAIL_RE.fullmatch(value.strip()):
      raise PydanticCustomError("contact_email_format", "email must look like name@example.com.")
    return value

  def to_fields(self) -> ContactFields:
    return ContactFields(name=self.name, email=self.email, service=self.service, budget=self.budget, deadline=self.deadline, message=self.message)


async def _read_body(request: Request) -> Any:
  """Return the submitted fields from a JSON body or an HTML form post."""
  content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
  if content_type in _FORM_CONTENT_TYPES:
    form = await request.form()
    return dict(form)

  try:
    return await request.json()
  except (json.JSONDecodeError, UnicodeDecodeError) as exc:
    raise RequestValidationError([{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "ctx": {"error": str(exc)}}]) from exc


async def parse_contact_request(request: Request) -> ContactRequest:
  """Validate either body encoding into a ContactRequest, failing with the usual 422."""
  body = await _read_body(request)
  try:
    return ContactRequest.model_validate(body)
  except ValidationError as exc:
    raise RequestValidationError([{**error, "loc": ("body", *error["loc"])} for error in exc.errors()]) from exc


@router.post("/contact", response_model=MessageResponse)
async def submit_contact(payload: ContactRequest = Depends(parse_contact_request), handler: SubmissionHandler = Depends(get_submission_handler)) -> MessageResponse:  # noqa: B008
  """Store the submission and acknowledge; notifications continue in the background.

  A storage failure raises ContactPersistenceError, rendered as a 500 by the app's handler.
  """
  result = await handler.handle_submission(payload.to_fields())
  return MessageResponse(message=result.message)
