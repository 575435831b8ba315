"""Tracked fire-and-forget tasks for notification side effects."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTaskRegistry:
  """Run notification work off the request path while keeping a handle on every task.

  Tasks are strongly referenced until they finish so the event loop cannot
  garbage-collect them mid-flight, failures are logged when a task completes,
  and `drain` lets the process wait for in-flight work on shutdown.
  """

  def __init__(self, *, max_pending: int = 64) -> None:
    if max_pending <= 0:
      raise ValueError("max_pending must be positive")
    self._tasks: set[asyncio.Task[Any]] = set()
    self._limiter = asyncio.Semaphore(max_pending)
    self._closed = False

  @property
  def pending(self) -> int:
    return len(self._tasks)

  def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any] | None:
    """Schedule `coro` and return its task, or None once the registry is draining."""
    if self._closed:
      coro.close()
      logger.warning("Background registry is draining; dropping task name=%s", name)
      return None

    task = asyncio.create_task(self._run_limited(coro), name=name)
    self._tasks.add(task)
    task.add_done_callback(self._on_task_done)
    return task

  async def _run_limited(self, coro: Coroutine[Any, Any, Any]) -> Any:
    # Cap concurrently running side effects; excess tasks wait here instead of piling onto threads.
    async with self._limiter:
      return await coro

  def _on_task_done(self, task: asyncio.Task[Any]) -> None:
    """Forget the task and log its failure so errors are never silent."""
    self._tasks.discard(task)
    if task.cancelled():
      logger.warning("Background task cancelled name=%s", task.get_name())
      return

    exc = task.exception()
    if exc is not None:
      logger.error("Background task failed name=%s error=%s", task.get_name(), exc, exc_info=exc)

  async def drain(self, timeout: float) -> int:
    """Stop accepting work, wait up to `timeout` seconds, then cancel what is left.

    Returns the number of tasks that had to be cancelled.
    """
    self._closed = True
    if not self._tasks:
      return 0

    logger.info("Draining %d background notification task(s) timeout=%.1fs", len(self._tasks), timeout)
    _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
    for task in still_running:
      task.cancel()

    if still_running:
      await asyncio.gather(*still_running, return_exceptions=True)
      logger.warning("Cancelled %d background notification task(s) at shutdown", len(still_running))

    return len(still_running)
