import logging
import logging.handlers
import sys
import time
from pathlib import Path
from types import TracebackType

from techpulse.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

_LOG_FILE_PATH: Path | None = None
_LOGGING_INITIALIZED = False


class TruncatedFormatter(logging.Formatter):
  """Formatter that truncates the stack trace to the last few lines."""

  # ruff: noqa: N802
  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:
    import traceback

    lines = traceback.format_exception(*ei)
    # Keep header + last 5 lines of traceback
    if len(lines) > 6:
      return "".join(lines[:1] + ["    ...\n"] + lines[-5:])
    return "".join(lines)


def _rotated_name(default_name: str) -> str:
  """Name backups `service.log-1` instead of `service.log.1`."""
  parts = default_name.rsplit(".", 1)
  if len(parts) == 2 and parts[1].isdigit():
    return f"{parts[0]}-{parts[1]}"
  return default_name


def _build_handlers(settings: Settings, log_dir: Path) -> tuple[logging.Handler, logging.Handler, Path]:
  """Create a stdout handler and a rotating file handler under `log_dir`."""
  try:
    log_dir.mkdir(parents=True, exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Failed to create log directory at {log_dir}: {exc}") from exc

  log_path = log_dir / f"techpulse_{time.strftime('%Y%m%d_%H%M%S')}.log"

  stream = logging.StreamHandler(sys.stdout)
  stream.setFormatter(TruncatedFormatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))

  try:
    file_handler = logging.handlers.RotatingFileHandler(log_path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
  except OSError as exc:
    raise RuntimeError(f"Failed to open log file at {log_path}: {exc}") from exc

  file_handler.namer = _rotated_name
  file_handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  return stream, file_handler, log_path


def setup_logging(settings: Settings, *, log_dir: Path | None = None) -> Path:
  """Route the root logger and uvicorn's loggers through the same handlers."""
  target_dir = log_dir or Path(__file__).resolve().parents[2] / "logs"
  stream_handler, file_handler, log_path = _build_handlers(settings, target_dir)
  for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
    log = logging.getLogger(logger_name)
    log.handlers = [stream_handler, file_handler]
    log.propagate = False

  level = logging.DEBUG if settings.debug else logging.INFO
  logging.basicConfig(level=level, handlers=[stream_handler, file_handler], force=True)
  if not log_path.exists():
    raise RuntimeError(f"Logging initialization failed; log file missing at {log_path}")
  return log_path


def initialize_logging(settings: Settings) -> None:
  """Initialize logging once per process."""
  global _LOG_FILE_PATH, _LOGGING_INITIALIZED
  if _LOGGING_INITIALIZED:
    return
  _LOG_FILE_PATH = setup_logging(settings)
  _LOGGING_INITIALIZED = True
  logging.getLogger("techpulse.core.logging").info("Logging initialized. Writing to %s", _LOG_FILE_PATH)
