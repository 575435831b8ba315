import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from techpulse.notifications.contracts import PersistenceError

logger = logging.getLogger("uvicorn.error")


def _coerce_json_safe(value: Any) -> Any:
  """Convert unsupported values into JSON-safe primitives for error responses."""
  if value is None or isinstance(value, bool | int | float | str):
    return value
  if isinstance(value, dict):
    return {str(key): _coerce_json_safe(item) for key, item in value.items()}
  if isinstance(value, list | tuple | set):
    return [_coerce_json_safe(item) for item in value]
  # Serialize exception instances explicitly to avoid leaking non-serializable objects.
  if isinstance(value, BaseException):
    error_message = str(value)
    if error_message:
      return f"{type(value).__name__}: {error_message}"
    return type(value).__name__
  return str(value)


def _error_payload(message: str, *, request_id: str | None = None, **extra: Any) -> dict[str, Any]:
  """Build the `{message}` error body shared by every endpoint."""
  payload: dict[str, Any] = {"message": message, **extra}
  # Attach a request id so support can correlate client reports to server logs.
  if request_id:
    payload["requestId"] = request_id
  return payload


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key != "input"}
    if "ctx" in scrubbed and isinstance(scrubbed["ctx"], dict):
      scrubbed_ctx = dict(scrubbed["ctx"])
      scrubbed_ctx.pop("input", None)
      scrubbed["ctx"] = scrubbed_ctx

    sanitized.append(_coerce_json_safe(scrubbed))

  return sanitized


def _request_id(request: Request) -> str | None:
  return getattr(request.state, "request_id", None)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Catch unhandled errors and answer with a generic 500."""
  request_id = _request_id(request)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", request_id=request_id))


async def persistence_exception_handler(request: Request, exc: PersistenceError) -> JSONResponse:
  """Store write failures are the only fatal errors; each store names its own client-facing message."""
  request_id = _request_id(request)
  logger.error("Persistence failure request_id=%s path=%s error=%s", request_id, request.url.path, exc, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload(exc.public_message, request_id=request_id))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Log request validation errors for debugging without leaking payloads."""
  request_id = _request_id(request)
  sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
  logger.warning("Request validation failed request_id=%s path=%s method=%s errors=%s", request_id, request.url.path, request.method, sanitized_errors)
  return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=_error_payload("Invalid request", request_id=request_id, errors=sanitized_errors))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Render HTTPExceptions as `{message}` bodies."""
  from techpulse.config import get_settings

  request_id = _request_id(request)
  # Route-authored string details are safe to return; anything else is masked.
  message = exc.detail if isinstance(exc.detail, str) else "Internal Server Error"
  if exc.status_code >= 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail, exc_info=exc.__cause__ or True)
    return JSONResponse(status_code=exc.status_code, content=_error_payload(message, request_id=request_id), headers=exc.headers)

  if get_settings().log_http_4xx:
    logger.warning("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail)

  if not isinstance(exc.detail, str):
    return JSONResponse(status_code=exc.status_code, content=_error_payload("Request failed", request_id=request_id, detail=_coerce_json_safe(exc.detail)), headers=exc.headers)

  return JSONResponse(status_code=exc.status_code, content=_error_payload(message, request_id=request_id), headers=exc.headers)
