"""Postgres-backed repository for background jobs using SQLAlchemy."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from guidebook.core.database import get_session_factory
from guidebook.jobs.models import JobRecord, JobStatus
from guidebook.schema.jobs import Job
from guidebook.storage.jobs_repo import JobsRepository


class PostgresJobsRepository(JobsRepository):
  """Persist jobs to Postgres."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def create_job(self, record: JobRecord) -> None:
    async with self._session_factory() as session:
      session.add(Job(id=record.job_id, project_id=record.project_id, kind=record.kind, status=record.status, progress=record.progress, data=record.data, result=record.result, error=record.error, created_at=record.created_at, started_at=record.started_at, completed_at=record.completed_at))
      await session.commit()

  async def get_job(self, job_id: str) -> JobRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Job, job_id)
      if row is None:
        return None
      return self._model_to_record(row)

  async def update_job(
    self,
    job_id: str,
    *,
    status: JobStatus | None = None,
    progress: int | None = None,
    data: dict[str, Any] | None = None,
    result: dict[str, Any] | None = None,
    error: str | None = None,
    started_at: datetime | None = None,
    completed_at: datetime | None = None,
  ) -> JobRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Job, job_id)
      if row is None:
        return None
      if status is not None:
        row.status = status
      if progress is not None:
        row.progress = progress
      if data is not None:
        row.data = data
      if result is not None:
        row.result = result
      if error is not None:
        row.error = error
      if started_at is not None:
        row.started_at = started_at
      if completed_at is not None:
        row.completed_at = completed_at
      await session.commit()
      await session.refresh(row)
      return self._model_to_record(row)

  @staticmethod
  def _model_to_record(row: Job) -> JobRecord:
    return JobRecord(job_id=row.id, project_id=row.project_id, kind=row.kind, status=row.status, progress=row.progress, data=dict(row.data or {}), result=row.result, error=row.error, created_at=row.created_at, started_at=row.started_at, completed_at=row.completed_at)
