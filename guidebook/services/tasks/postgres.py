"""Postgres-backed durable queue for document rendering tasks."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import and_, or_, select, update

from guidebook.core.database import get_session_factory
from guidebook.jobs.models import utc_now
from guidebook.schema.jobs import Job
from guidebook.schema.tasks import DocumentTask as DocumentTaskRow
from guidebook.services.tasks.interface import DocumentTask, DocumentTaskPayload, DocumentTaskQueue
from guidebook.utils.ids import generate_id

logger = logging.getLogger(__name__)

LOST_ATTEMPT_ERROR = "Worker stopped responding before the attempt finished."


def retry_delay_seconds(base_seconds: float, attempts: int) -> float:
  """Exponential backoff after the given number of failed attempts."""
  return base_seconds * 2 ** max(attempts - 1, 0)


class PostgresDocumentTaskQueue(DocumentTaskQueue):
  """Queue rows are claimed with ``FOR UPDATE SKIP LOCKED`` so replicas never share a task."""

  def __init__(self, *, max_attempts: int = 2, retry_base_seconds: float = 5.0, visibility_timeout_seconds: int = 900, default_priority: int = 10) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")
    self._max_attempts = max_attempts
    self._retry_base_seconds = retry_base_seconds
    self._visibility_timeout = timedelta(seconds=visibility_timeout_seconds)
    self._default_priority = default_priority

  async def enqueue(self, payload: DocumentTaskPayload, *, priority: int | None = None) -> str:
    task_id = generate_id()
    async with self._session_factory() as session:
      session.add(DocumentTaskRow(id=task_id, payload=payload.to_dict(), status="queued", priority=self._default_priority if priority is None else priority, attempts=0, max_attempts=self._max_attempts, available_at=utc_now()))
      await session.commit()
    logger.info("Queued %s-%s task %s for project %s", payload.type, payload.language, task_id, payload.project_id)
    return task_id

  async def claim_next(self) -> DocumentTask | None:
    now = utc_now()
    stale_before = now - self._visibility_timeout
    abandoned = and_(DocumentTaskRow.status == "running", DocumentTaskRow.locked_at < stale_before)
    async with self._session_factory() as session:
      async with session.begin():
        # The job row of a lost attempt would otherwise stay IN_PROGRESS forever.
        lost_jobs = select(DocumentTaskRow.job_id).where(abandoned, DocumentTaskRow.job_id.is_not(None))
        await session.execute(
          update(Job)
          .where(Job.id.in_(lost_jobs), Job.status.in_(("PENDING", "IN_PROGRESS")))
          .values(status="FAILED", error=LOST_ATTEMPT_ERROR, completed_at=now)
          .execution_options(synchronize_session=False)
        )
        # Tasks whose consumer died after the last attempt are not retried again.
        await session.execute(
          update(DocumentTaskRow)
          .where(abandoned, DocumentTaskRow.attempts >= DocumentTaskRow.max_attempts)
          .values(status="failed", locked_at=None, job_id=None, last_error="Worker lost the task after its final attempt.")
          .execution_options(synchronize_session=False)
        )
        available = and_(DocumentTaskRow.status == "queued", DocumentTaskRow.available_at <= now)
        stmt = select(DocumentTaskRow).where(or_(available, abandoned)).order_by(DocumentTaskRow.priority.asc(), DocumentTaskRow.available_at.asc()).limit(1).with_for_update(skip_locked=True)
        row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
          return None
        if row.status == "running":
          logger.warning("Reclaiming task %s after visibility timeout", row.id)
        row.status = "running"
        row.locked_at = now
        row.job_id = None
        row.attempts += 1
        return DocumentTask(task_id=row.id, payload=DocumentTaskPayload.from_dict(row.payload), attempts=row.attempts, max_attempts=row.max_attempts)

  async def attach_job(self, task_id: str, job_id: str) -> None:
    async with self._session_factory() as session:
      await session.execute(update(DocumentTaskRow).where(DocumentTaskRow.id == task_id).values(job_id=job_id))
      await session.commit()

  async def mark_done(self, task_id: str) -> None:
    async with self._session_factory() as session:
      await session.execute(update(DocumentTaskRow).where(DocumentTaskRow.id == task_id).values(status="done", locked_at=None, last_error=None))
      await session.commit()

  async def mark_failed(self, task_id: str, error: str) -> bool:
    async with self._session_factory() as session:
      async with session.begin():
        row = await session.get(DocumentTaskRow, task_id, with_for_update=True)
        if row is None:
          logger.warning("Task %s vanished before its failure could be recorded", task_id)
          return False
        row.last_error = error
        row.locked_at = None
        if row.attempts < row.max_attempts:
          delay = retry_delay_seconds(self._retry_base_seconds, row.attempts)
          row.status = "queued"
          row.available_at = utc_now() + timedelta(seconds=delay)
          logger.info("Task %s re-queued in %.0fs (attempt %d/%d)", task_id, delay, row.attempts, row.max_attempts)
          return True
        row.status = "failed"
        return False

