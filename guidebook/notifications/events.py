"""In-process, fire-and-forget event emission for pipeline observers."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from functools import lru_cache
from typing import Any

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict[str, Any]], Awaitable[None] | None]

CHAPTER_GENERATED = "content.chapter.generated"
GENERATION_COMPLETED = "content.generation.completed"
GENERATION_FAILED = "content.generation.failed"
DOCUMENT_GENERATED = "document.generated"
TRANSLATION_CHAPTER_COMPLETED = "translation.chapter.completed"
TRANSLATION_COMPLETED = "translation.completed"
TRANSLATION_FAILED = "translation.failed"

WILDCARD = "*"


class EventBus:
  """Dispatch events to subscribed listeners without ever failing the emitter.

  Sync listeners run inline. Coroutine listeners are scheduled on the running loop and tracked until done.
  """

  def __init__(self) -> None:
    self._listeners: dict[str, list[Listener]] = defaultdict(list)
    self._pending: set[asyncio.Task[Any]] = set()

  def subscribe(self, event_name: str, listener: Listener) -> None:
    """Register a listener for one event name, or ``"*"`` for every event."""
    self._listeners[event_name].append(listener)

  def emit(self, event_name: str, payload: dict[str, Any]) -> None:
    listeners = [*self._listeners.get(event_name, ()), *self._listeners.get(WILDCARD, ())]
    for listener in listeners:
      try:
        outcome = listener(event_name, payload)
      except Exception:  # noqa: BLE001
        logger.exception("Listener failed for event %s", event_name)
        continue
      if inspect.isawaitable(outcome):
        self._schedule(event_name, outcome)

  def _schedule(self, event_name: str, outcome: Awaitable[None]) -> None:
    try:
      loop = asyncio.get_running_loop()
    except RuntimeError:
      # No running loop: nothing can await the listener.
      logger.warning("Dropping async listener for %s; no running event loop", event_name)
      if inspect.iscoroutine(outcome):
        outcome.close()
      return
    task = loop.create_task(outcome) if inspect.iscoroutine(outcome) else asyncio.ensure_future(outcome, loop=loop)
    self._pending.add(task)
    task.add_done_callback(lambda done: self._on_done(event_name, done))

  def _on_done(self, event_name: str, task: asyncio.Task[Any]) -> None:
    self._pending.discard(task)
    if task.cancelled():
      return
    exc = task.exception()
    if exc is not None:
      logger.error("Async listener failed for event %s: %s", event_name, exc, exc_info=exc)

  async def drain(self) -> None:
    """Wait for scheduled listeners; used on shutdown and in tests."""
    if self._pending:
      await asyncio.gather(*list(self._pending), return_exceptions=True)


def log_event(event_name: str, payload: dict[str, Any]) -> None:
  logger.info("Event %s %s", event_name, payload)


@lru_cache(maxsize=1)
def get_event_bus() -> EventBus:
  """Return the process-wide bus with the logging listener attached."""
  bus = EventBus()
  bus.subscribe(WILDCARD, log_event)
  return bus
