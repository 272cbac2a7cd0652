"""Shared in-memory doubles for repository, queue, renderer and storage collaborators."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import pytest

from guidebook.jobs.models import JobRecord
from guidebook.rendering import RenderedDocument, RenderRequest
from guidebook.services.storage_client import UploadResult
from guidebook.services.tasks.interface import DocumentTask, DocumentTaskPayload
from guidebook.storage.documents_repo import DocumentRecord, DuplicateDocumentError
from guidebook.storage.projects_repo import ChapterRecord, ImageRecord, ProjectBundle, ProjectRecord, TranslationRecord


@pytest.fixture
def anyio_backend():
  return "asyncio"


class InMemoryJobsRepo:
  def __init__(self) -> None:
    self.jobs: dict[str, JobRecord] = {}
    self.progress_log: list[int] = []

  async def create_job(self, record: JobRecord) -> None:
    self.jobs[record.job_id] = record

  async def get_job(self, job_id: str) -> JobRecord | None:
    return self.jobs.get(job_id)

  async def update_job(self, job_id: str, **kwargs: Any) -> JobRecord | None:
    record = self.jobs.get(job_id)
    if record is None:
      return None
    updated = replace(record, **{key: value for key, value in kwargs.items() if value is not None})
    self.jobs[job_id] = updated
    if kwargs.get("progress") is not None:
      self.progress_log.append(updated.progress)
    return updated


class InMemoryProjectsRepo:
  def __init__(self) -> None:
    self.projects: dict[str, ProjectRecord] = {}
    self.chapters: dict[str, list[ChapterRecord]] = {}
    self.images: dict[str, list[ImageRecord]] = {}
    self.translations: dict[tuple[str, str], TranslationRecord] = {}
    self.status_history: list[str] = []

  def add_project(self, project: ProjectRecord) -> ProjectRecord:
    self.projects[project.project_id] = project
    return project

  async def get_project(self, project_id: str) -> ProjectRecord | None:
    return self.projects.get(project_id)

  async def get_project_bundle(self, project_id: str) -> ProjectBundle | None:
    project = self.projects.get(project_id)
    if project is None:
      return None
    chapters = sorted(self.chapters.get(project_id, []), key=lambda chapter: chapter.order)
    return ProjectBundle(project=project, chapters=chapters, images=list(self.images.get(project_id, [])))

  async def update_project(self, project_id: str, *, status: str | None = None, number_of_chapters: int | None = None) -> ProjectRecord | None:
    project = self.projects.get(project_id)
    if project is None:
      return None
    updated = replace(project, **{key: value for key, value in {"status": status, "number_of_chapters": number_of_chapters}.items() if value is not None})
    self.projects[project_id] = updated
    if status is not None:
      self.status_history.append(status)
    return updated

  async def add_chapter(self, record: ChapterRecord) -> None:
    self.chapters.setdefault(record.project_id, []).append(record)

  async def list_chapters(self, project_id: str) -> list[ChapterRecord]:
    return sorted(self.chapters.get(project_id, []), key=lambda chapter: chapter.order)

  async def count_chapters(self, project_id: str) -> int:
    return len(self.chapters.get(project_id, []))

  async def delete_chapters(self, project_id: str) -> int:
    return len(self.chapters.pop(project_id, []))

  async def get_translation(self, project_id: str, language: str) -> TranslationRecord | None:
    return self.translations.get((project_id, language))

  async def list_translations(self, project_id: str) -> list[TranslationRecord]:
    return [record for (owner, _), record in self.translations.items() if owner == project_id]

  async def save_translation(self, record: TranslationRecord) -> TranslationRecord:
    self.translations[(record.project_id, record.language)] = record
    return record


class InMemoryDocumentsRepo:
  def __init__(self) -> None:
    self.documents: dict[tuple[str, str, str], DocumentRecord] = {}

  async def create_document(self, record: DocumentRecord) -> DocumentRecord:
    key = (record.project_id, record.type, record.language)
    if key in self.documents:
      raise DuplicateDocumentError(record.project_id, record.type, record.language)
    self.documents[key] = record
    return record

  async def get_document(self, project_id: str, document_type: str, language: str) -> DocumentRecord | None:
    return self.documents.get((project_id, document_type, language))

  async def list_completed(self, project_id: str) -> list[DocumentRecord]:
    records = [record for (owner, _, _), record in self.documents.items() if owner == project_id and record.status == "COMPLETED"]
    return sorted(records, key=lambda record: (record.language, record.type))


class InMemoryTaskQueue:
  def __init__(self) -> None:
    self.pending: list[DocumentTask] = []
    self.done: list[str] = []
    self.failed: list[tuple[str, str]] = []
    self.attached: dict[str, str] = {}
    self.retry = False
    self._counter = 0

  async def enqueue(self, payload: DocumentTaskPayload, *, priority: int | None = None) -> str:
    self._counter += 1
    task_id = f"task-{self._counter}"
    self.pending.append(DocumentTask(task_id=task_id, payload=payload, attempts=0, max_attempts=2))
    return task_id

  async def claim_next(self) -> DocumentTask | None:
    if not self.pending:
      return None
    task = self.pending.pop(0)
    return replace(task, attempts=task.attempts + 1)

  async def attach_job(self, task_id: str, job_id: str) -> None:
    self.attached[task_id] = job_id

  async def mark_done(self, task_id: str) -> None:
    self.done.append(task_id)

  async def mark_failed(self, task_id: str, error: str) -> bool:
    self.failed.append((task_id, error))
    return self.retry


class RecordingRenderer:
  def __init__(self, extension: str = "pdf", *, error: Exception | None = None) -> None:
    self.extension = extension
    self.error = error
    self.requests: list[RenderRequest] = []

  async def render(self, request: RenderRequest) -> RenderedDocument:
    self.requests.append(request)
    if self.error is not None:
      raise self.error
    return RenderedDocument(buffer=b"%PDF-1.7 rendered", filename=f"book_{request.language.lower()}.{self.extension}", content_type="application/octet-stream")


class InMemoryStorage:
  def __init__(self) -> None:
    self.objects: dict[str, bytes] = {}
    self.deleted: list[str] = []

  async def upload(self, buffer: bytes, filename: str, content_type: str) -> UploadResult:
    public_id = f"books/documents/{filename}"
    self.objects[public_id] = buffer
    return UploadResult(url=f"https://storage.example.test/{public_id}", public_id=public_id, size=len(buffer))

  async def delete(self, public_id: str) -> None:
    self.objects.pop(public_id, None)
    self.deleted.append(public_id)


class RecordingEvents:
  def __init__(self) -> None:
    self.emitted: list[tuple[str, dict[str, Any]]] = []

  def emit(self, event_name: str, payload: dict[str, Any]) -> None:
    self.emitted.append((event_name, payload))

  def names(self) -> list[str]:
    return [name for name, _ in self.emitted]


@pytest.fixture
def jobs_repo() -> InMemoryJobsRepo:
  return InMemoryJobsRepo()


@pytest.fixture
def projects_repo() -> InMemoryProjectsRepo:
  return InMemoryProjectsRepo()


@pytest.fixture
def documents_repo() -> InMemoryDocumentsRepo:
  return InMemoryDocumentsRepo()


@pytest.fixture
def task_queue() -> InMemoryTaskQueue:
  return InMemoryTaskQueue()


@pytest.fixture
def events() -> RecordingEvents:
  return RecordingEvents()


def outline_payload(chapters: int) -> dict[str, Any]:
  """Well-formed outline with ``chapters`` entries of 3 sections x 3 subsections."""
  titles = ["Introduction", *[f"Chapter Topic {number}" for number in range(2, chapters)], "Conclusion"]
  return {
    "chapters": [
      {
        "chapterNumber": number,
        "chapterTitle": title,
        "sections": [{"sectionTitle": f"{title} section {section}", "subsections": [f"Point {section}.{item}" for item in range(1, 4)]} for section in range(1, 4)],
      }
      for number, title in enumerate(titles, start=1)
    ]
  }


@pytest.fixture
def make_outline():
  return outline_payload


@pytest.fixture
def storage() -> InMemoryStorage:
  return InMemoryStorage()


@pytest.fixture
def renderers() -> dict[str, RecordingRenderer]:
  return {"PDF": RecordingRenderer("pdf"), "DOCX": RecordingRenderer("docx")}


@pytest.fixture
def make_renderer():
  return RecordingRenderer
