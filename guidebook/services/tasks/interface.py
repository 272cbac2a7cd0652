from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from guidebook.storage.documents_repo import DocumentType
from guidebook.storage.projects_repo import Language


@dataclass(frozen=True)
class DocumentTaskPayload:
  """Queue-delivered request to render one document."""

  project_id: str
  type: DocumentType
  language: Language
  title: str | None = None
  subtitle: str | None = None
  author: str | None = None
  include_images: bool = True

  def to_dict(self) -> dict[str, Any]:
    return {"projectId": self.project_id, "type": self.type, "language": self.language, "title": self.title, "subtitle": self.subtitle, "author": self.author, "includeImages": self.include_images}

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> DocumentTaskPayload:
    include_images = data.get("includeImages")
    return cls(project_id=str(data["projectId"]), type=data["type"], language=data["language"], title=data.get("title"), subtitle=data.get("subtitle"), author=data.get("author"), include_images=True if include_images is None else bool(include_images))


@dataclass(frozen=True)
class DocumentTask:
  task_id: str
  payload: DocumentTaskPayload
  attempts: int
  max_attempts: int


class DocumentTaskQueue(Protocol):
  """Durable queue of document rendering tasks."""

  async def enqueue(self, payload: DocumentTaskPayload, *, priority: int | None = None) -> str:
    """Persist a task and return its id."""
    ...

  async def claim_next(self) -> DocumentTask | None:
    """Lock the next available task for this consumer, or return ``None``."""
    ...

  async def attach_job(self, task_id: str, job_id: str) -> None:
    """Remember the job row tracking the current attempt so a lost attempt can be failed on reclaim."""
    ...

  async def mark_done(self, task_id: str) -> None:
    """Acknowledge a finished task."""
    ...

  async def mark_failed(self, task_id: str, error: str) -> bool:
    """Record a failure; returns ``True`` when the task was re-queued for another attempt."""
    ...
