"""Unit tests for API exception sanitization behavior."""

from __future__ import annotations

from techpulse.core.exceptions import _error_payload, _sanitize_validation_errors
from techpulse.notifications.contracts import ContactPersistenceError, SubscriptionPersistenceError


def test_sanitize_validation_errors_removes_input_and_serializes_exception_ctx() -> None:
  """Ensure validation errors stay JSON-serializable and redact raw request payloads."""
  errors = [{"type": "value_error", "loc": ("body", "email"), "msg": "Value error, email must be a valid address.", "input": "not-an-email", "ctx": {"error": ValueError("email must be a valid address."), "input": "not-an-email"}}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert sanitized[0]["loc"] == ["body", "email"]
  assert sanitized[0]["ctx"]["error"] == "ValueError: email must be a valid address."
  assert "input" not in sanitized[0]["ctx"]


def test_error_payload_only_carries_request_id_when_known() -> None:
  assert _error_payload("Server error") == {"message": "Server error"}
  assert _error_payload("Server error", request_id="abc") == {"message": "Server error", "requestId": "abc"}


def test_persistence_errors_carry_their_client_message() -> None:
  assert ContactPersistenceError("insert failed").public_message == "Server error"
  assert SubscriptionPersistenceError("insert failed").public_message == "Failed to save subscription"
