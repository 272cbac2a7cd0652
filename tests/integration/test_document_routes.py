from __future__ import annotations

from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient

from guidebook.main import app
from guidebook.services.documents import format_size
from guidebook.storage.documents_repo import DocumentRecord
from guidebook.storage.projects_repo import ProjectRecord, TranslationRecord


@pytest.fixture
async def client(monkeypatch: pytest.MonkeyPatch, projects_repo, documents_repo, task_queue):
  monkeypatch.setattr("guidebook.services.documents._get_projects_repo", lambda: projects_repo)
  monkeypatch.setattr("guidebook.services.documents._get_documents_repo", lambda: documents_repo)
  monkeypatch.setattr("guidebook.services.documents._get_task_queue", lambda _settings: task_queue)
  projects_repo.add_project(ProjectRecord(project_id="project-1", title="Lisbon Unfolded", author="Ana Sousa", status="COMPLETED"))
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
    yield http_client


def _document(language: str, document_type: str, size: int) -> DocumentRecord:
  return DocumentRecord(
    document_id=f"{document_type}-{language}",
    project_id="project-1",
    type=document_type,
    language=language,
    filename=f"lisbon_unfolded_{language.lower()}.{document_type.lower()}",
    url=f"https://storage.example.test/{language}/{document_type}",
    storage_key=f"books/documents/{language}-{document_type}",
    size=size,
    status="COMPLETED",
    created_at=datetime(2026, 10, 1, tzinfo=UTC),
  )


@pytest.mark.anyio
async def test_enqueue_document_returns_202_with_task_id(client, task_queue) -> None:
  response = await client.post("/documents/project-1", json={"type": "PDF", "language": "GERMAN", "includeImages": False})

  assert response.status_code == 202
  assert response.json()["taskId"] == "task-1"
  payload = task_queue.pending[0].payload
  assert (payload.type, payload.language, payload.include_images) == ("PDF", "GERMAN", False)


@pytest.mark.anyio
async def test_enqueue_existing_document_conflicts(client, documents_repo, task_queue) -> None:
  await documents_repo.create_document(_document("ENGLISH", "PDF", 100))

  response = await client.post("/documents/project-1", json={"type": "PDF"})

  assert response.status_code == 409
  assert task_queue.pending == []


@pytest.mark.anyio
async def test_enqueue_for_unknown_project_returns_404(client) -> None:
  response = await client.post("/documents/ghost", json={"type": "DOCX", "language": "ENGLISH"})
  assert response.status_code == 404


@pytest.mark.anyio
async def test_generate_all_covers_english_and_completed_translations(client, projects_repo, documents_repo, task_queue) -> None:
  await projects_repo.save_translation(TranslationRecord(translation_id="tr-fr", project_id="project-1", language="FRENCH", title="Lisbonne", status="COMPLETED"))
  await projects_repo.save_translation(TranslationRecord(translation_id="tr-de", project_id="project-1", language="GERMAN", title="Lissabon", status="IN_PROGRESS"))
  await documents_repo.create_document(_document("ENGLISH", "PDF", 100))

  response = await client.post("/documents/project-1/generate-all", json={})

  assert response.status_code == 202
  body = response.json()
  assert body["skipped"] == ["PDF-ENGLISH"]
  queued = [(task.payload.type, task.payload.language) for task in task_queue.pending]
  assert queued == [("DOCX", "ENGLISH"), ("PDF", "FRENCH"), ("DOCX", "FRENCH")]
  assert len(body["taskIds"]) == 3


@pytest.mark.anyio
async def test_download_links_group_documents_by_language(client, documents_repo) -> None:
  await documents_repo.create_document(_document("ENGLISH", "PDF", 1536))
  await documents_repo.create_document(_document("FRENCH", "PDF", 2 * 1024 * 1024))
  await documents_repo.create_document(_document("FRENCH", "DOCX", 512))

  response = await client.get("/books/download/project-1")

  assert response.status_code == 200
  body = response.json()
  assert body["projectId"] == "project-1"
  assert body["title"] == "Lisbon Unfolded"
  assert body["totalDocuments"] == 3
  assert "message" not in body
  assert sorted(body["byLanguage"]) == ["ENGLISH", "FRENCH"]
  assert {entry["type"] for entry in body["byLanguage"]["FRENCH"]} == {"PDF", "DOCX"}
  english = body["byLanguage"]["ENGLISH"][0]
  assert english["size"] == "1.5 KB"
  assert english["sizeBytes"] == 1536
  assert english["storageKey"] == "books/documents/ENGLISH-PDF"


@pytest.mark.anyio
async def test_download_links_without_documents_include_message(client) -> None:
  response = await client.get("/books/download/project-1")

  body = response.json()
  assert body["totalDocuments"] == 0
  assert body["documents"] == []
  assert body["message"] == "No documents have been generated for this project yet."


@pytest.mark.anyio
async def test_download_links_for_unknown_project_returns_404(client) -> None:
  response = await client.get("/books/download/ghost")
  assert response.status_code == 404


def test_format_size_uses_binary_units() -> None:
  assert format_size(None) == "0 Bytes"
  assert format_size(512) == "512 Bytes"
  assert format_size(1536) == "1.5 KB"
  assert format_size(5 * 1024 * 1024) == "5 MB"
