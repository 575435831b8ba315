import json

from techpulse.notifications.contracts import ContactFields
from techpulse.notifications.template_renderer import CONTACT_NOTIFICATION_TITLE, build_push_payload, render_contact_email, render_desktop_notification


def _fields(**overrides) -> ContactFields:
  values = {"name": "Ada", "email": "ada@example.com", "service": "web", "budget": "$5k", "deadline": "2 weeks", "message": "Hello"}
  values.update(overrides)
  return ContactFields(**values)


def test_contact_email_lists_every_field():
  subject, text, html = render_contact_email(_fields())

  assert subject == CONTACT_NOTIFICATION_TITLE
  for expected in ("Name: Ada", "Email: ada@example.com", "Service: web", "Budget: $5k", "Deadline: 2 weeks", "Hello"):
    assert expected in text
  assert "<strong>Name:</strong> Ada" in html
  assert "<strong>Email:</strong> ada@example.com" in html


def test_submitted_markup_is_escaped_by_default():
  _, text, html = render_contact_email(_fields(message="<script>alert(1)</script>", name='Eve "the" <b>'))

  assert "<script>" not in html
  assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
  assert "Eve &quot;the&quot; &lt;b&gt;" in html
  # The plain-text alternative is never escaped.
  assert "<script>alert(1)</script>" in text


def test_escaping_can_be_disabled():
  _, _, html = render_contact_email(_fields(message="<b>bold</b>"), escape_html=False)

  assert "<b>bold</b>" in html


def test_empty_optional_fields_render_as_blank():
  _, text, _ = render_contact_email(_fields(service="", budget="", deadline="", message=""))

  assert "Service: \n" in text
  assert "Budget: \n" in text


def test_push_payload_is_title_and_sender_summary():
  payload = json.loads(build_push_payload(_fields()).decode("utf-8"))

  assert payload == {"title": "New Contact Form Submission", "body": "From: Ada (ada@example.com)"}


def test_desktop_notification_text():
  notification = render_desktop_notification(_fields())

  assert notification.title == "New Contact Form Submission"
  assert notification.message == "From: Ada (ada@example.com)"
