"""Domain models for asynchronous generation jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

JobStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED", "FAILED", "CANCELLED"]
JobKind = Literal["CONTENT_GENERATION", "TRANSLATION", "PDF_GENERATION", "DOCX_GENERATION", "IMAGE_PROCESSING"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"COMPLETED", "FAILED", "CANCELLED"})


def utc_now() -> datetime:
  return datetime.now(UTC)


@dataclass
class JobRecord:
  """One asynchronous unit of work and its observable progress."""

  job_id: str
  project_id: str
  kind: JobKind
  status: JobStatus = "PENDING"
  progress: int = 0
  data: dict[str, Any] = field(default_factory=dict)
  result: dict[str, Any] | None = None
  error: str | None = None
  created_at: datetime = field(default_factory=utc_now)
  started_at: datetime | None = None
  completed_at: datetime | None = None

  @property
  def is_terminal(self) -> bool:
    return self.status in TERMINAL_STATUSES
