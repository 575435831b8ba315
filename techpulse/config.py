"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from techpulse.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

DEFAULT_FROM_NAME = "TechPulse Contact Form"


@dataclass(frozen=True)
class Settings:
  """Typed settings for the TechPulse contact service."""

  environment: str
  debug: bool
  port: int
  allowed_origins: tuple[str, ...]
  static_dir: str | None
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  pg_dsn: str | None
  pg_connect_timeout: int
  email_notifications_enabled: bool
  email_provider: str
  email_user: str | None
  email_password: str | None
  email_to_address: str | None
  email_from_name: str
  email_timeout_seconds: int
  email_escape_html: bool
  smtp_host: str
  smtp_port: int
  mailersend_api_key: str | None
  mailersend_base_url: str
  desktop_notifications_enabled: bool
  push_vapid_public_key: str | None
  push_vapid_private_key: str | None
  push_vapid_sub: str | None
  push_timeout_seconds: int
  push_max_concurrency: int
  rate_limit_max_requests: int
  rate_limit_window_seconds: int
  shutdown_drain_seconds: float

  @property
  def push_enabled(self) -> bool:
    """Push signing needs both halves of the VAPID key pair."""
    return bool(self.push_vapid_public_key and self.push_vapid_private_key)


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ()

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if "*" in origins:
    raise ValueError("TECHPULSE_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_int(name: str, default: str, *, minimum: int = 1) -> int:
  value = int(os.getenv(name, default))
  if value < minimum:
    qualifier = "a positive integer" if minimum == 1 else f"an integer >= {minimum}"
    raise ValueError(f"{name} must be {qualifier}.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("TECHPULSE_ENV", "development").lower()
  debug = _parse_bool(os.getenv("TECHPULSE_DEBUG"))

  # Accept the bare PORT used by most PaaS runtimes.
  port = int(os.getenv("TECHPULSE_PORT") or os.getenv("PORT") or "3000")
  if not 0 < port < 65536:
    raise ValueError("TECHPULSE_PORT must be a valid TCP port.")

  email_provider = (os.getenv("TECHPULSE_EMAIL_PROVIDER") or "smtp").strip().lower()
  if email_provider not in {"smtp", "mailersend"}:
    raise ValueError("TECHPULSE_EMAIL_PROVIDER must be 'smtp' or 'mailersend'.")

  email_user = _optional_str(os.getenv("TECHPULSE_EMAIL_USER") or os.getenv("EMAIL_USER"))
  push_vapid_sub = _optional_str(os.getenv("TECHPULSE_PUSH_VAPID_SUB"))
  if push_vapid_sub is None and email_user:
    push_vapid_sub = f"mailto:{email_user}"

  if push_vapid_sub and not (push_vapid_sub.startswith("mailto:") or push_vapid_sub.startswith("https://")):
    raise ValueError("TECHPULSE_PUSH_VAPID_SUB must start with 'mailto:' or 'https://'.")

  shutdown_drain_seconds = float(os.getenv("TECHPULSE_SHUTDOWN_DRAIN_SECONDS", "10"))
  if shutdown_drain_seconds < 0:
    raise ValueError("TECHPULSE_SHUTDOWN_DRAIN_SECONDS must not be negative.")

  return Settings(
    environment=environment,
    debug=debug,
    port=port,
    allowed_origins=_parse_origins(os.getenv("TECHPULSE_ALLOWED_ORIGINS")),
    static_dir=_optional_str(os.getenv("TECHPULSE_STATIC_DIR")),
    log_max_bytes=_parse_int("TECHPULSE_LOG_MAX_BYTES", "5242880"),
    log_backup_count=_parse_int("TECHPULSE_LOG_BACKUP_COUNT", "10", minimum=0),
    log_http_4xx=_parse_bool(os.getenv("TECHPULSE_LOG_HTTP_4XX")),
    pg_dsn=os.getenv("TECHPULSE_PG_DSN") or os.getenv("DATABASE_URL"),
    pg_connect_timeout=_parse_int("TECHPULSE_PG_CONNECT_TIMEOUT", "5"),
    email_notifications_enabled=_parse_bool(os.getenv("TECHPULSE_EMAIL_NOTIFICATIONS_ENABLED"), default=True),
    email_provider=email_provider,
    email_user=email_user,
    email_password=_optional_str(os.getenv("TECHPULSE_EMAIL_PASSWORD") or os.getenv("EMAIL_PASSWORD")),
    email_to_address=_optional_str(os.getenv("TECHPULSE_EMAIL_TO")) or email_user,
    email_from_name=_optional_str(os.getenv("TECHPULSE_EMAIL_FROM_NAME")) or DEFAULT_FROM_NAME,
    email_timeout_seconds=_parse_int("TECHPULSE_EMAIL_TIMEOUT_SECONDS", "10"),
    email_escape_html=_parse_bool(os.getenv("TECHPULSE_EMAIL_ESCAPE_HTML"), default=True),
    smtp_host=(os.getenv("TECHPULSE_SMTP_HOST") or "smtp.gmail.com").strip(),
    smtp_port=_parse_int("TECHPULSE_SMTP_PORT", "465"),
    mailersend_api_key=_optional_str(os.getenv("TECHPULSE_MAILERSEND_API_KEY")),
    mailersend_base_url=(os.getenv("TECHPULSE_MAILERSEND_BASE_URL") or "https://api.mailersend.com/v1").strip(),
    desktop_notifications_enabled=_parse_bool(os.getenv("TECHPULSE_DESKTOP_NOTIFICATIONS_ENABLED"), default=True),
    push_vapid_public_key=_optional_str(os.getenv("TECHPULSE_PUSH_VAPID_PUBLIC_KEY") or os.getenv("PUBLIC_VAPID_KEY")),
    push_vapid_private_key=_optional_str(os.getenv("TECHPULSE_PUSH_VAPID_PRIVATE_KEY") or os.getenv("PRIVATE_VAPID_KEY")),
    push_vapid_sub=push_vapid_sub,
    push_timeout_seconds=_parse_int("TECHPULSE_PUSH_TIMEOUT_SECONDS", "10"),
    push_max_concurrency=_parse_int("TECHPULSE_PUSH_MAX_CONCURRENCY", "8"),
    rate_limit_max_requests=_parse_int("TECHPULSE_RATE_LIMIT_MAX_REQUESTS", "100", minimum=0),
    rate_limit_window_seconds=_parse_int("TECHPULSE_RATE_LIMIT_WINDOW_SECONDS", "900"),
    shutdown_drain_seconds=shutdown_drain_seconds,
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration."""
  # Keep database configuration isolated so migrations don't require unrelated env vars.
  debug = _parse_bool(os.getenv("TECHPULSE_DEBUG"))
  pg_connect_timeout = _parse_int("TECHPULSE_PG_CONNECT_TIMEOUT", "5")
  pg_dsn = os.getenv("TECHPULSE_PG_DSN") or os.getenv("DATABASE_URL")

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value
