"""Storage interface for background jobs."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from guidebook.jobs.models import JobRecord, JobStatus


class JobsRepository(Protocol):
  """Repository contract for job persistence."""

  async def create_job(self, record: JobRecord) -> None:
    """Persist an initial job record."""

  async def get_job(self, job_id: str) -> JobRecord | None:
    """Fetch a job by identifier."""

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
    """Apply partial updates to a job; ``None`` leaves a field unchanged."""
