"""Document enqueueing and download link queries."""

from __future__ import annotations

import logging
from collections import defaultdict

from fastapi import HTTPException, status

from guidebook.api.models import DocumentEnqueuedResponse, DocumentLink, DocumentRequest, DownloadLinksResponse, GenerateAllRequest, GenerateAllResponse
from guidebook.config import Settings
from guidebook.services.tasks.factory import get_task_queue
from guidebook.services.tasks.interface import DocumentTaskPayload, DocumentTaskQueue
from guidebook.storage.documents_repo import DOCUMENT_TYPES, DocumentRecord, DocumentsRepository
from guidebook.storage.factory import get_documents_repo, get_projects_repo
from guidebook.storage.projects_repo import BASE_LANGUAGE, LANGUAGES, ProjectRecord, ProjectsRepository

logger = logging.getLogger(__name__)

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def _get_projects_repo() -> ProjectsRepository:
  return get_projects_repo()


def _get_documents_repo() -> DocumentsRepository:
  return get_documents_repo()


def _get_task_queue(settings: Settings) -> DocumentTaskQueue:
  return get_task_queue(settings)


def format_size(size_bytes: int | None) -> str:
  """Human readable size, e.g. ``1536 -> "1.5 KB"``."""
  if not size_bytes:
    return "0 Bytes"
  value = float(size_bytes)
  unit = 0
  while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
    value /= 1024
    unit += 1
  return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


async def _require_project(projects_repo: ProjectsRepository, project_id: str) -> ProjectRecord:
  project = await projects_repo.get_project(project_id)
  if project is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Project with ID {project_id} not found")
  return project


async def enqueue_document(project_id: str, request: DocumentRequest, settings: Settings) -> DocumentEnqueuedResponse:
  """Queue one render; rejects keys that already have a document."""
  await _require_project(_get_projects_repo(), project_id)
  existing = await _get_documents_repo().get_document(project_id, request.type, request.language)
  if existing is not None:
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"A {request.type} document in {request.language} already exists for this project.")

  payload = DocumentTaskPayload(project_id=project_id, type=request.type, language=request.language, title=request.title, subtitle=request.subtitle, author=request.author, include_images=request.include_images)
  task_id = await _get_task_queue(settings).enqueue(payload)
  logger.info("Queued %s-%s document for project %s as task %s", request.type, request.language, project_id, task_id)
  return DocumentEnqueuedResponse(message=f"{request.type} generation queued", task_id=task_id, project_id=project_id, type=request.type, language=request.language)


async def enqueue_all(project_id: str, request: GenerateAllRequest, settings: Settings) -> GenerateAllResponse:
  """Queue PDF and DOCX for English and every completed translation, skipping existing documents."""
  projects_repo = _get_projects_repo()
  documents_repo = _get_documents_repo()
  await _require_project(projects_repo, project_id)

  translated = {translation.language for translation in await projects_repo.list_translations(project_id) if translation.status == "COMPLETED"}
  available = [language for language in LANGUAGES if language == BASE_LANGUAGE or language in translated]
  languages = [language for language in available if request.languages is None or language in request.languages]

  queue = _get_task_queue(settings)
  task_ids: list[str] = []
  skipped: list[str] = []
  for language in languages:
    for document_type in DOCUMENT_TYPES:
      key = f"{document_type}-{language}"
      if await documents_repo.get_document(project_id, document_type, language) is not None:
        skipped.append(key)
        continue
      task_ids.append(await queue.enqueue(DocumentTaskPayload(project_id=project_id, type=document_type, language=language)))

  if request.languages:
    skipped.extend(f"{document_type}-{language}" for language in request.languages if language not in available for document_type in DOCUMENT_TYPES)
  logger.info("Queued %d documents for project %s (skipped %d)", len(task_ids), project_id, len(skipped))
  return GenerateAllResponse(message=f"Queued {len(task_ids)} document(s)", project_id=project_id, task_ids=task_ids, skipped=skipped)


def _document_link(record: DocumentRecord) -> DocumentLink:
  return DocumentLink(
    id=record.document_id,
    filename=record.filename,
    type=record.type,
    language=record.language,
    size=format_size(record.size),
    size_bytes=record.size,
    url=record.url,
    storage_key=record.storage_key,
    created_at=record.created_at,
  )


async def get_download_links(project_id: str) -> DownloadLinksResponse:
  project = await _require_project(_get_projects_repo(), project_id)
  documents = [_document_link(record) for record in await _get_documents_repo().list_completed(project_id)]

  by_language: dict[str, list[DocumentLink]] = defaultdict(list)
  for document in documents:
    by_language[document.language].append(document)

  message = None if documents else "No documents have been generated for this project yet."
  return DownloadLinksResponse(project_id=project_id, title=project.title, total_documents=len(documents), documents=documents, by_language=dict(by_language), message=message)
