import logging
import os

from techpulse.config import get_settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the service; migrations run separately via `alembic upgrade head`."""
  port = get_settings().port
  logger.info("Starting TechPulse contact service on port %s (run alembic upgrade head in deploy pipeline)...", port)
  # Replace the current process with uvicorn so signals (SIGTERM, etc.) reach it directly
  # and the lifespan shutdown can drain in-flight notifications.
  args = ["uvicorn", "techpulse.main:app", "--host", "0.0.0.0", "--port", str(port), "--no-server-header", "--proxy-headers"]
  os.execvp("uvicorn", args)


if __name__ == "__main__":
  main()
