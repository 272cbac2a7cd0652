from __future__ import annotations

from guidebook.config import Settings
from guidebook.services.tasks.interface import DocumentTaskQueue
from guidebook.services.tasks.postgres import PostgresDocumentTaskQueue


def get_task_queue(settings: Settings) -> DocumentTaskQueue:
  """Factory for the configured document task queue."""
  return PostgresDocumentTaskQueue(max_attempts=settings.task_max_attempts, retry_base_seconds=settings.task_retry_base_seconds, visibility_timeout_seconds=settings.worker_visibility_timeout_seconds, default_priority=settings.task_priority)
