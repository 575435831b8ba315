"""Rendering of the contact notification content for email, push and desktop.

Email bodies are stored on disk as templates with `{{placeholder}}` markers.
"""

from __future__ import annotations

import html
import json
import re
from dataclasses import asdict
from functools import lru_cache
from pathlib import Path
from typing import Any

from techpulse.notifications.contracts import ContactFields, DesktopNotification

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")
_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

CONTACT_NOTIFICATION_TITLE = "New Contact Form Submission"
CONTACT_EMAIL_HTML = "contact_submission_v1.html"
CONTACT_EMAIL_TEXT = "contact_submission_v1.txt"


def contact_summary(fields: ContactFields) -> str:
  """One-line sender summary shared by the desktop and push notifications."""
  return f"From: {fields.name} ({fields.email})"


def render_contact_email(fields: ContactFields, *, escape_html: bool = True) -> tuple[str, str, str]:
  """Render subject/text/html for a contact submission.

  With `escape_html=False` the submitted values are embedded in the HTML body
  verbatim, which lets a submitter inject markup into the relayed message.
  """
  placeholders = asdict(fields)
  html_payload = _render_text(_load_template_file(CONTACT_EMAIL_HTML), placeholders=placeholders, escape_html=escape_html)
  text_payload = _render_text(_load_template_file(CONTACT_EMAIL_TEXT), placeholders=placeholders, escape_html=False)
  return CONTACT_NOTIFICATION_TITLE, text_payload, html_payload


def build_push_payload(fields: ContactFields) -> bytes:
  """Serialize the `{title, body}` JSON object the service worker displays."""
  return json.dumps({"title": CONTACT_NOTIFICATION_TITLE, "body": contact_summary(fields)}).encode("utf-8")


def render_desktop_notification(fields: ContactFields) -> DesktopNotification:
  return DesktopNotification(title=CONTACT_NOTIFICATION_TITLE, message=contact_summary(fields))


def _render_text(raw_template: str, *, placeholders: dict[str, Any], escape_html: bool) -> str:
  """Replace {{placeholders}} with values, escaping for HTML when needed."""

  def _replace(match: re.Match[str]) -> str:
    key = match.group(1)
    value = placeholders.get(key, "")
    rendered = str(value) if value is not None else ""
    if escape_html:
      return html.escape(rendered, quote=True)
    return rendered

  return _PLACEHOLDER_RE.sub(_replace, raw_template)


@lru_cache(maxsize=4)
def _load_template_file(filename: str) -> str:
  """Load a template file from disk with caching."""
  path = _TEMPLATE_DIR / filename
  return path.read_text(encoding="utf-8")
