import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI

from techpulse.config import get_settings
from techpulse.core.logging import initialize_logging
from techpulse.notifications.factory import build_runtime

logger = logging.getLogger("techpulse.core.lifespan")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Build the runtime on startup; drain notification work and close the pool on shutdown."""
  settings = get_settings()

  try:
    initialize_logging(settings)
  except RuntimeError:
    # A read-only filesystem should not keep the API from serving; stdout logging still works.
    logging.basicConfig(level=logging.INFO)
    logger.warning("File logging setup failed; continuing with stdout only.", exc_info=True)

  runtime = build_runtime(settings)
  app.state.runtime = runtime
  logger.info("Startup complete environment=%s port=%s database=%s push_enabled=%s email_provider=%s", settings.environment, settings.port, _redact_dsn(settings.pg_dsn), settings.push_enabled, settings.email_provider if settings.email_notifications_enabled else "disabled")

  try:
    yield
  finally:
    cancelled = await runtime.background.drain(settings.shutdown_drain_seconds)
    if cancelled:
      logger.warning("Shutdown dropped %d in-flight notification task(s)", cancelled)
    if runtime.engine is not None:
      await runtime.engine.dispose()
    logger.info("Shutdown complete")


def _redact_dsn(raw: str | None) -> str:
  """Redact credentials from a DSN while keeping host/db visible."""
  if not raw:
    return "<unset>"

  parsed = urlparse(raw)
  if not parsed.scheme:
    return "<invalid>"

  user = parsed.username or ""
  host = parsed.hostname or ""
  port = f":{parsed.port}" if parsed.port else ""
  netloc = f"{user}@{host}{port}" if user else f"{host}{port}"
  database = parsed.path.lstrip("/")
  path = f"/{database}" if database else ""
  return f"{parsed.scheme}://{netloc}{path}"
