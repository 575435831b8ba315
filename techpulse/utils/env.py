"""Lightweight .env loader for local configuration."""

from __future__ import annotations

import os
from pathlib import Path


def default_env_path() -> Path:
  """Return the default .env path at the repo root."""

  return Path(__file__).resolve().parents[2] / ".env"


def load_env_file(path: Path, *, override: bool = False) -> None:
  """Load key=value pairs from a .env file into the process environment."""

  if not path.is_file():
    return

  for raw_line in path.read_text(encoding="utf-8").splitlines():
    parsed = _parse_line(raw_line)
    if parsed is None:
      continue

    key, value = parsed
    if not override and key in os.environ:
      continue
    os.environ[key] = value


def _parse_line(raw_line: str) -> tuple[str, str] | None:
  line = raw_line.strip()
  if not line or line.startswith("#"):
    return None
  if line.startswith("export "):
    line = line[len("export ") :].lstrip()
  if "=" not in line:
    return None

  key, value = line.split("=", 1)
  key = key.strip()
  value = value.strip()
  if not key:
    return None

  if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
    return key, value[1:-1]

  # Unquoted values may carry a trailing ` # comment`.
  comment_at = value.find(" #")
  if comment_at != -1:
    value = value[:comment_at].rstrip()

  return key, value
