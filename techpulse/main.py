from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from techpulse import __version__
from techpulse.api.routes import contact, push
from techpulse.config import get_settings
from techpulse.core.exceptions import global_exception_handler, http_exception_handler, persistence_exception_handler, request_validation_exception_handler
from techpulse.core.lifespan import lifespan
from techpulse.core.middleware import RateLimitMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware
from techpulse.notifications.contracts import PersistenceError

settings = get_settings()

app = FastAPI(title="TechPulse Contact", version=__version__, lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

if settings.allowed_origins:
  app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=False, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(PersistenceError, persistence_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RateLimitMiddleware, max_requests=settings.rate_limit_max_requests, window_seconds=settings.rate_limit_window_seconds)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(contact.router, prefix="/api", tags=["contact"])
app.include_router(push.router, prefix="/api", tags=["push"])

# Mounted last so the catch-all static route never shadows the API.
if settings.static_dir and Path(settings.static_dir).is_dir():
  app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
