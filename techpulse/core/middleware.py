import json
import logging
import time
import uuid
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("techpulse.core.middleware")

_SECURITY_HEADERS = {"x-content-type-options": "nosniff", "x-frame-options": "SAMEORIGIN", "referrer-policy": "no-referrer", "cross-origin-opener-policy": "same-origin"}
RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def _build_request_url(scope: Scope) -> str:
  """Build a readable URL path for logging without relying on Request bodies."""
  path = scope.get("path", "")
  query_string = scope.get("query_string", b"")
  if query_string:
    return f"{path}?{query_string.decode('latin-1')}"

  return path


class RequestLoggingMiddleware:
  """Log request/response metadata and tag each request with an id. Bodies are never logged."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    # Skip non-HTTP scopes to avoid interfering with websocket or lifespan events.
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    # Store the id for downstream handlers and exception logging.
    request_id = str(uuid.uuid4())
    scope.setdefault("state", {})["request_id"] = request_id

    start_time = time.perf_counter()
    method = scope.get("method", "UNKNOWN")
    logger.info("Incoming request request_id=%s %s %s", request_id, method, _build_request_url(scope))

    status_code: int | None = None

    async def send_wrapper(message: dict[str, Any]) -> None:
      nonlocal status_code
      if message.get("type") == "http.response.start":
        status_code = message.get("status")
        response_headers = MutableHeaders(scope=message)
        if "x-request-id" not in response_headers:
          response_headers["x-request-id"] = request_id

      await send(message)

    await self.app(scope, receive, send_wrapper)

    process_time = (time.perf_counter() - start_time) * 1000
    logger.info("Response request_id=%s status=%s (took %.2fms)", request_id, status_code or 0, process_time)


class SecurityHeadersMiddleware:
  """Strip server fingerprinting headers and add conservative browser security headers."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    async def send_wrapper(message: dict[str, Any]) -> None:
      if message["type"] == "http.response.start":
        headers = MutableHeaders(scope=message)
        if "x-powered-by" in headers:
          del headers["x-powered-by"]
        # Uvicorn adds its own Server header later; run it with --no-server-header.
        if "server" in headers:
          del headers["server"]
        for name, value in _SECURITY_HEADERS.items():
          if name not in headers:
            headers[name] = value

      await send(message)

    await self.app(scope, receive, send_wrapper)


class RateLimitMiddleware:
  """Fixed-window request limit per client address for paths under `path_prefix`.

  Counters live in process memory, so each worker process enforces its own limit.
  """

  _SWEEP_THRESHOLD = 10_000

  def __init__(self, app: ASGIApp, *, max_requests: int, window_seconds: int, path_prefix: str = "/api/") -> None:
    self.app = app
    self.max_requests = max_requests
    self.window_seconds = window_seconds
    self.path_prefix = path_prefix
    self._windows: dict[str, tuple[float, int]] = {}

  def _client_key(self, scope: Scope) -> str:
    client = scope.get("client")
    return client[0] if client else "unknown"

  def _hit(self, key: str, now: float) -> float | None:
    """Count a request and return seconds until reset when the limit is exceeded."""
    if len(self._windows) > self._SWEEP_THRESHOLD:
      self._windows = {k: v for k, v in self._windows.items() if now - v[0] < self.window_seconds}

    window_start, count = self._windows.get(key, (now, 0))
    if now - window_start >= self.window_seconds:
      window_start, count = now, 0

    if count >= self.max_requests:
      self._windows[key] = (window_start, count)
      return max(window_start + self.window_seconds - now, 0.0)

    self._windows[key] = (window_start, count + 1)
    return None

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http" or self.max_requests <= 0 or not scope.get("path", "").startswith(self.path_prefix):
      await self.app(scope, receive, send)
      return

    key = self._client_key(scope)
    retry_after = self._hit(key, time.monotonic())
    if retry_after is None:
      await self.app(scope, receive, send)
      return

    logger.warning("Rate limit exceeded client=%s path=%s", key, scope.get("path"))
    body = json.dumps({"message": RATE_LIMIT_MESSAGE}).encode("utf-8")
    headers = [(b"content-type", b"application/json"), (b"content-length", str(len(body)).encode("latin-1")), (b"retry-after", str(int(retry_after) + 1).encode("latin-1"))]
    await send({"type": "http.response.start", "status": 429, "headers": headers})
    await send({"type": "http.response.body", "body": body})
