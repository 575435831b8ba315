import pytest

from techpulse.config import get_settings

_ENV_NAMES = (
  "TECHPULSE_PORT",
  "PORT",
  "TECHPULSE_EMAIL_USER",
  "EMAIL_USER",
  "TECHPULSE_EMAIL_PASSWORD",
  "EMAIL_PASSWORD",
  "TECHPULSE_EMAIL_TO",
  "TECHPULSE_EMAIL_PROVIDER",
  "TECHPULSE_PUSH_VAPID_PUBLIC_KEY",
  "TECHPULSE_PUSH_VAPID_PRIVATE_KEY",
  "PUBLIC_VAPID_KEY",
  "PRIVATE_VAPID_KEY",
  "TECHPULSE_PUSH_VAPID_SUB",
  "TECHPULSE_ALLOWED_ORIGINS",
  "TECHPULSE_EMAIL_ESCAPE_HTML",
  "TECHPULSE_PG_DSN",
  "DATABASE_URL",
)


@pytest.fixture
def clean_env(monkeypatch):
  for name in _ENV_NAMES:
    monkeypatch.delenv(name, raising=False)
  get_settings.cache_clear()
  yield monkeypatch
  get_settings.cache_clear()


def test_defaults(clean_env):
  settings = get_settings()

  assert settings.port == 3000
  assert settings.email_provider == "smtp"
  assert settings.smtp_host == "smtp.gmail.com"
  assert settings.smtp_port == 465
  assert settings.email_escape_html is True
  assert settings.email_from_name == "TechPulse Contact Form"
  assert settings.email_to_address is None
  assert settings.push_enabled is False
  assert settings.allowed_origins == ()


def test_plain_deployment_variables_are_honoured(clean_env):
  clean_env.setenv("PORT", "8080")
  clean_env.setenv("EMAIL_USER", "owner@example.com")
  clean_env.setenv("EMAIL_PASSWORD", "app-password")
  clean_env.setenv("PUBLIC_VAPID_KEY", "pub")
  clean_env.setenv("PRIVATE_VAPID_KEY", "priv")
  clean_env.setenv("DATABASE_URL", "postgres://u:p@db/contact")

  settings = get_settings()

  assert settings.port == 8080
  assert settings.email_user == "owner@example.com"
  assert settings.email_password == "app-password"
  assert settings.email_to_address == "owner@example.com"
  assert settings.push_vapid_sub == "mailto:owner@example.com"
  assert settings.push_enabled is True
  assert settings.pg_dsn == "postgres://u:p@db/contact"


def test_prefixed_variables_win_over_plain_ones(clean_env):
  clean_env.setenv("PORT", "8080")
  clean_env.setenv("TECHPULSE_PORT", "9000")
  clean_env.setenv("EMAIL_USER", "plain@example.com")
  clean_env.setenv("TECHPULSE_EMAIL_USER", "prefixed@example.com")

  settings = get_settings()

  assert settings.port == 9000
  assert settings.email_user == "prefixed@example.com"


def test_wildcard_origin_is_rejected(clean_env):
  clean_env.setenv("TECHPULSE_ALLOWED_ORIGINS", "https://techpulse.example, *")

  with pytest.raises(ValueError, match="wildcard"):
    get_settings()


def test_unknown_email_provider_is_rejected(clean_env):
  clean_env.setenv("TECHPULSE_EMAIL_PROVIDER", "carrier-pigeon")

  with pytest.raises(ValueError):
    get_settings()


def test_vapid_sub_must_be_mailto_or_https(clean_env):
  clean_env.setenv("TECHPULSE_PUSH_VAPID_SUB", "owner@example.com")

  with pytest.raises(ValueError, match="mailto"):
    get_settings()


def test_escaping_can_be_turned_off(clean_env):
  clean_env.setenv("TECHPULSE_EMAIL_ESCAPE_HTML", "false")

  assert get_settings().email_escape_html is False


def test_one_vapid_half_does_not_enable_push(clean_env):
  clean_env.setenv("TECHPULSE_PUSH_VAPID_PUBLIC_KEY", "pub")

  assert get_settings().push_enabled is False
