"""Job progress tracking with one-directional status transitions."""

from __future__ import annotations

import logging
from typing import Any

from guidebook.jobs.models import JobRecord, JobStatus, utc_now
from guidebook.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)

# Progress reaches 100 only through complete().
MAX_RUNNING_PROGRESS = 99


class JobCanceledError(Exception):
  """Raised when a job was cancelled out of band while it was running."""


class JobProgressTracker:
  """Own the job row for a single run.

  Progress never decreases, the job enters IN_PROGRESS once, and exactly one terminal transition
  (completed or failed) is written. Results passed to checkpoints are merged into the stored result.
  """

  def __init__(self, *, job_id: str, jobs_repo: JobsRepository, initial_progress: int = 0, initial_result: dict[str, Any] | None = None) -> None:
    self._job_id = job_id
    self._jobs_repo = jobs_repo
    self._progress = max(0, min(initial_progress, MAX_RUNNING_PROGRESS))
    self._result: dict[str, Any] = dict(initial_result or {})
    self._status: JobStatus = "PENDING"

  @property
  def job_id(self) -> str:
    return self._job_id

  @property
  def progress(self) -> int:
    return self._progress

  @property
  def status(self) -> JobStatus:
    return self._status

  @property
  def result(self) -> dict[str, Any]:
    return dict(self._result)

  @property
  def is_terminal(self) -> bool:
    return self._status in {"COMPLETED", "FAILED", "CANCELLED"}

  async def _raise_if_canceled(self) -> None:
    record = await self._jobs_repo.get_job(self._job_id)
    if record is not None and record.status == "CANCELLED":
      self._status = "CANCELLED"
      raise JobCanceledError(f"Job {self._job_id} was cancelled.")

  async def _update_job(self, **payload: Any) -> JobRecord | None:
    await self._raise_if_canceled()
    record = await self._jobs_repo.update_job(self._job_id, **payload)
    if record is None:
      logger.warning("Job %s disappeared while updating progress", self._job_id)
    return record

  async def start(self) -> JobRecord | None:
    """Move the job to IN_PROGRESS and stamp started_at."""
    if self._status != "PENDING":
      logger.warning("Ignoring start for job %s in status %s", self._job_id, self._status)
      return None
    self._status = "IN_PROGRESS"
    return await self._update_job(status="IN_PROGRESS", started_at=utc_now(), progress=self._progress)

  async def checkpoint(self, progress: int, *, result: dict[str, Any] | None = None) -> JobRecord | None:
    """Record a progress checkpoint, merging any partial result."""
    if self.is_terminal:
      logger.warning("Ignoring checkpoint %s for finished job %s", progress, self._job_id)
      return None
    self._progress = max(self._progress, min(int(progress), MAX_RUNNING_PROGRESS))
    if result:
      self._result.update(result)
    return await self._update_job(progress=self._progress, result=dict(self._result) if result else None)

  async def complete(self, result: dict[str, Any] | None = None) -> JobRecord | None:
    """Write the success transition: COMPLETED, progress 100, completed_at."""
    if self.is_terminal:
      logger.warning("Ignoring completion for finished job %s (status %s)", self._job_id, self._status)
      return None
    if result:
      self._result.update(result)
    record = await self._update_job(status="COMPLETED", progress=100, result=dict(self._result), completed_at=utc_now())
    self._status = "COMPLETED"
    self._progress = 100
    return record

  async def fail(self, message: str) -> JobRecord | None:
    """Write the failure transition: FAILED, error and completed_at; progress stays where it was."""
    if self.is_terminal:
      logger.warning("Ignoring failure for finished job %s (status %s): %s", self._job_id, self._status, message)
      return None
    record = await self._jobs_repo.get_job(self._job_id)
    if record is not None and record.status == "CANCELLED":
      self._status = "CANCELLED"
      logger.info("Job %s was cancelled; keeping cancelled status", self._job_id)
      return record
    self._status = "FAILED"
    return await self._jobs_repo.update_job(self._job_id, status="FAILED", error=message or "Unknown error", completed_at=utc_now())
