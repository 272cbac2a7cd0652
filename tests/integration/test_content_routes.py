from __future__ import annotations

from dataclasses import replace
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from guidebook.ai.orchestrator import GENERATION_STEPS, GenerationRequest
from guidebook.api.deps import get_text_client
from guidebook.config import get_settings
from guidebook.jobs.models import JobRecord
from guidebook.main import app
from guidebook.storage.projects_repo import ProjectRecord


@pytest.fixture
def pipeline():
  return AsyncMock()


@pytest.fixture
async def client(monkeypatch: pytest.MonkeyPatch, jobs_repo, projects_repo, pipeline):
  monkeypatch.setattr("guidebook.services.content._get_jobs_repo", lambda: jobs_repo)
  monkeypatch.setattr("guidebook.services.content._get_projects_repo", lambda: projects_repo)
  monkeypatch.setattr("guidebook.services.content._get_pipeline", lambda *_args: pipeline)
  app.dependency_overrides[get_settings] = lambda: replace(get_settings(), project_lookup_retry_seconds=0.01)
  app.dependency_overrides[get_text_client] = lambda: object()
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
    yield http_client
  app.dependency_overrides.clear()


@pytest.mark.anyio
async def test_generate_creates_pending_job_and_schedules_pipeline(client, jobs_repo, projects_repo, pipeline) -> None:
  projects_repo.add_project(ProjectRecord(project_id="project-1", title="Lisbon Unfolded"))

  response = await client.post("/content/generate-travel-guide/project-1", json={"title": "Lisbon Unfolded", "author": "Ana Sousa", "numberOfChapters": 12})

  assert response.status_code == 200
  body = response.json()
  assert body["message"] == "Travel guide book generation started"
  assert body["projectId"] == "project-1"
  assert body["steps"] == list(GENERATION_STEPS)
  job = jobs_repo.jobs[body["jobId"]]
  assert job.kind == "CONTENT_GENERATION"
  assert job.data["numberOfChapters"] == 12
  pipeline.run.assert_awaited_once_with(job_id=body["jobId"], project_id="project-1", request=GenerationRequest(title="Lisbon Unfolded", author="Ana Sousa", number_of_chapters=12))
  assert response.headers["x-request-id"]


@pytest.mark.anyio
async def test_generate_for_unknown_project_returns_404_after_retry(client, jobs_repo, pipeline) -> None:
  response = await client.post("/content/generate-travel-guide/ghost", json={"title": "Nowhere", "author": "Nobody"})

  assert response.status_code == 404
  assert "ghost" in response.json()["detail"]
  assert jobs_repo.jobs == {}
  pipeline.run.assert_not_called()


@pytest.mark.anyio
@pytest.mark.parametrize("chapters", [4, 31])
async def test_generate_rejects_chapter_count_outside_bounds(client, projects_repo, chapters: int) -> None:
  projects_repo.add_project(ProjectRecord(project_id="project-1", title="Lisbon Unfolded"))

  response = await client.post("/content/generate-travel-guide/project-1", json={"title": "Lisbon", "author": "Ana", "numberOfChapters": chapters})

  assert response.status_code == 422
  assert "requestId" in response.json()


@pytest.mark.anyio
async def test_status_returns_job_progress(client, jobs_repo) -> None:
  await jobs_repo.create_job(JobRecord(job_id="job-1", project_id="project-1", kind="CONTENT_GENERATION", status="IN_PROGRESS", progress=40))

  response = await client.get("/content/status/job-1")

  assert response.status_code == 200
  body = response.json()
  assert body["jobId"] == "job-1"
  assert body["status"] == "IN_PROGRESS"
  assert body["progress"] == 40
  assert body["type"] == "CONTENT_GENERATION"


@pytest.mark.anyio
async def test_status_for_unknown_job_returns_404(client) -> None:
  response = await client.get("/content/status/missing")

  assert response.status_code == 404
  assert response.json()["detail"] == "Job not found."
