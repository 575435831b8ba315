"""FastAPI dependencies resolving the startup-built runtime."""

from __future__ import annotations

from fastapi import Depends, Request

from techpulse.config import Settings, get_settings
from techpulse.notifications.contracts import SubscriptionStore
from techpulse.notifications.factory import AppRuntime
from techpulse.notifications.submission import SubmissionHandler


def get_runtime(request: Request) -> AppRuntime:
  runtime = getattr(request.app.state, "runtime", None)
  if runtime is None:
    raise RuntimeError("Application runtime is not initialized; was the lifespan skipped?")
  return runtime


def get_app_settings() -> Settings:
  return get_settings()


def get_submission_handler(runtime: AppRuntime = Depends(get_runtime)) -> SubmissionHandler:  # noqa: B008
  return runtime.submission_handler


def get_subscription_store(runtime: AppRuntime = Depends(get_runtime)) -> SubscriptionStore:  # noqa: B008
  return runtime.subscription_repo
